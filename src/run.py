#!/usr/bin/env python3

import argparse
import base64
import os
import socket
import sys
import threading
import requests
from collections import namedtuple
from datetime import datetime
from case_insensitive_dict import CaseInsensitiveDict

import calver_format as calver
import image_reference
import registry_api
from errors import InvalidAuthModeError, MissingCredentialError, RegistryCallError, RegistryDecodeError, RegistryResponseError


def positive_seconds(value):
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError('invalid timeout: ' + repr(value))
    if seconds <= 0:
        raise argparse.ArgumentTypeError('timeout must be greater than 0: ' + repr(value))
    return seconds


parser = argparse.ArgumentParser(description='Compute the next calendar version tag of a container image repository.')
parser.add_argument('-r', '--repository', type=str.strip, help='The repository image to read tags from (e.g. ghcr.io/org/app).')
parser.add_argument('-a', '--auth-mode', type=str.strip, help='One of noauth, basic or bearer (defaults to noauth).')
parser.add_argument('--registry-scheme', type=str.strip, help='The URL scheme of the registry API (defaults to https).')
parser.add_argument('-u', '--registry-username', type=str.strip, help='The username for basic auth.')
parser.add_argument('-p', '--registry-password', type=str.strip, help='The password for basic auth or the token for bearer auth.')
parser.add_argument('-t', '--timeout-seconds', type=positive_seconds, help='Abort the registry call after this many seconds.')
parser.add_argument('-f', '--calver-format', type=str.strip, help='The calver format of the tags (defaults to YYYY.MM.MICRO).')
parser.add_argument('--calver-prefix', type=str.strip, help='A literal prefix of the tags (e.g. v).')
parser.add_argument('-v', '--verbose', action='count', default=0, help='Print debug output.')

DEFAULTS = {
    'auth_mode': 'noauth',
    'registry_scheme': 'https',
    'calver_format': 'YYYY.MM.MICRO',
    'calver_prefix': '',
}


def action_input(name):
    """Read a GitHub Actions input (INPUT_<NAME>); blank values count as unset."""
    value = os.environ.get('INPUT_' + name.upper(), '').strip()
    return value or None


def parse_arguments(argv=None):
    # string defaults go through the option's type, so env values are validated like flags
    parser.set_defaults(**{
        action.dest: action_input(action.dest)
        for action in parser._actions
        if action.dest not in ('help', 'verbose')
    })
    result = parser.parse_args(argv)
    for name, value in DEFAULTS.items():
        if not getattr(result, name):
            setattr(result, name, value)
    if os.environ.get('RUNNER_DEBUG') == '1':
        result.verbose = max(result.verbose, 1)
    return result


args = None


def debug(*values):
    if args is not None and args.verbose:
        print('>>> [debug]', *values)


AUTH_MODES = ['noauth', 'basic', 'bearer']


def validate_auth(auth_mode, username, password):
    if auth_mode not in AUTH_MODES:
        raise InvalidAuthModeError(auth_mode)
    if auth_mode == 'basic' and not username:
        raise MissingCredentialError('registry_username', auth_mode)
    if auth_mode in ('basic', 'bearer') and not password:
        raise MissingCredentialError('registry_password', auth_mode)


def build_headers(auth_mode, username, password):
    headers = CaseInsensitiveDict[str, str](data={'Accept': 'application/json'})
    if auth_mode == 'basic':
        token = base64.b64encode((username + ':' + password).encode('utf-8')).decode('ascii')
        headers['Authorization'] = 'Basic ' + token
    elif auth_mode == 'bearer':
        headers['Authorization'] = 'Bearer ' + password
    return headers


def shutdown_connection(r):
    """Shut the response's socket down, which wakes up a read blocked on it."""
    connection = getattr(r.raw, '_connection', None)
    sock = getattr(connection, 'sock', None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # already closed by the reading side
        return


def download(url, headers, timeout=None):
    """
    GET a url and read its whole body within one deadline of `timeout` seconds.

    requests' own timeout only bounds the connect and each socket read, so a timer
    shuts the connection down once the deadline passes. The timer is cancelled and
    the response closed on every exit path.
    """
    responses = []
    expired = threading.Event()

    def abort():
        expired.set()
        for r in responses:
            shutdown_connection(r)

    timer = None
    if timeout:
        timer = threading.Timer(timeout, abort)
        timer.daemon = True
        timer.start()
    try:
        r = requests.get(url, headers=headers, timeout=timeout, stream=True)
        responses.append(r)
        if expired.is_set():
            shutdown_connection(r)
        r.content  # read the body while the timer runs
    except Exception as err:
        if expired.is_set():
            raise RegistryCallError('Failed to call registry: timed out after ' + str(timeout) + ' seconds') from err
        if isinstance(err, requests.exceptions.RequestException):
            raise RegistryCallError('Failed to call registry: ' + str(err)) from err
        raise
    finally:
        if timer is not None:
            timer.cancel()
        for response in responses:
            response.close()

    # the body may be cut short without a read error
    if expired.is_set():
        raise RegistryCallError('Failed to call registry: timed out after ' + str(timeout) + ' seconds')
    return r


def fetch_tags(api, headers, timeout=None):
    """
    List the tags of a repository with a single GET request.

    A 404 means the repository was not pushed yet, which is reported as no tags.
    """
    r = download(api.url, headers, timeout=timeout)

    if r.status_code == 404:
        print('>>> Repository does not exist. Assuming no tags.')
        return []

    if not r.ok:
        raise RegistryResponseError(r.status_code, r.reason or r.text)

    try:
        o = r.json()
    except ValueError as err:
        raise RegistryDecodeError('Failed to parse registry JSON: ' + str(err)) from err
    return api.extract_tags(o)


def strip_prefix(tags, prefix):
    return [t[len(prefix):] if isinstance(t, str) and t.startswith(prefix) else t for t in tags]


def filter_valid_tags(fmt, tags):
    valid_tags = []
    for t in tags:
        if calver.is_valid(fmt, t):
            valid_tags.append(t)
        else:
            debug('Skipping non-calver tag:', t)
    return valid_tags


def fallback_version(fmt, now):
    return calver.format_from(fmt, {
        'year': now.year,
        'month': now.month - 1,  # last month, so the major increase lands on this one
        'micro': 0,
    })


CONTINUE = 'continue'
FAIL = 'fail'

# (granularity, what to do when the increase is rejected)
INCREMENT_ATTEMPTS = [
    ('major', CONTINUE),
    ('micro', FAIL),
]


def increase_version(fmt, version, now, attempts=INCREMENT_ATTEMPTS):
    for granularity, on_failure in attempts:
        try:
            return calver.increase(granularity, fmt, version, now=now)
        except calver.CalVerError as err:
            if on_failure == FAIL:
                raise
            debug('Cannot increase', granularity, 'of', version + ':', err)
    raise calver.CalVerError('No increase applies to ' + version)


VersionDecision = namedtuple('VersionDecision', ['current', 'new'])


def run_main_logic(now=None):
    if now is None:
        now = datetime.now()
    fmt = args.calver_format
    prefix = args.calver_prefix or ''

    validate_auth(args.auth_mode, args.registry_username, args.registry_password)

    ref = image_reference.parse(args.repository)
    api = registry_api.resolve(ref.registry_host, args.registry_scheme, ref.repository_path)
    headers = build_headers(args.auth_mode, args.registry_username, args.registry_password)

    print('>>> Read tags for', ref.registry_host + '/' + ref.repository_path)
    debug('GET', api.url)
    tags = fetch_tags(api, headers, timeout=args.timeout_seconds)
    print('>>> Found', len(tags), 'tags')
    debug('Tags:', ','.join(str(t) for t in tags))

    if prefix:
        tags = strip_prefix(tags, prefix)
        debug('Stripped prefix \'' + prefix + '\' from tags')

    valid_tags = filter_valid_tags(fmt, tags)
    debug('Valid calver tags:', ','.join(valid_tags))

    current = calver.latest_of(fmt, valid_tags)
    debug('Current tag:', current or 'none')

    new = increase_version(fmt, current or fallback_version(fmt, now), now)
    print('>>> Computed calver:', new)

    if prefix:
        debug('Adding prefix \'' + prefix + '\' to tags')
        return VersionDecision(prefix + current if current else current, prefix + new)
    return VersionDecision(current, new)


def write_outputs(decision):
    outputs = [
        ('current', decision.current or ''),
        ('new', decision.new),
    ]
    output_file = os.environ.get('GITHUB_OUTPUT')
    if output_file:
        with open(output_file, 'a') as writer:
            for name, value in outputs:
                writer.write(name + '=' + value + '\n')
    for name, value in outputs:
        print(name + '=' + value)


def main(argv=None):
    global args
    args = parse_arguments(argv)
    if not args.repository:
        parser.error('--repository is required')

    try:
        write_outputs(run_main_logic())
    except Exception as err:
        print('::error::' + str(err), file=sys.stderr)
        sys.exit(-1)


if __name__ == '__main__':
    main()
