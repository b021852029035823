"""
Calendar versioning (https://calver.org) for tags like 2024.6.0 or 24.06.3.

A format is a string of tokens and literal separators, e.g. 'YYYY.MM.MICRO':
    YYYY  full year            2024
    YY    short year           24, 106
    0Y    zero-padded year     06, 24
    MM    month                1 ... 12
    0M    zero-padded month    01 ... 12
    WW    ISO week             1 ... 53
    0W    zero-padded week     01 ... 53
    DD    day                  1 ... 31
    0D    zero-padded day      01 ... 31
    MAJOR, MINOR, MICRO        0, 1, 2, ...
"""

import re
from datetime import date
from functools import lru_cache


class CalVerError(Exception):
    pass


NUMBER = r'0|[1-9]\d*'

# token -> (value key, strict pattern, loose pattern, formatter)
TOKENS = {
    'YYYY': ('year', r'[1-9]\d{3}', r'\d{4}', lambda v: str(v)),
    'YY': ('year', NUMBER, r'\d+', lambda v: str(v - 2000)),
    '0Y': ('year', r'\d{2,}', r'\d{2,}', lambda v: '%02d' % (v - 2000)),
    'MM': ('month', r'1[0-2]|[1-9]', r'\d+', lambda v: str(v)),
    '0M': ('month', r'0[1-9]|1[0-2]', r'\d{2}', lambda v: '%02d' % v),
    'WW': ('week', r'5[0-3]|[1-4]\d|[1-9]', r'\d+', lambda v: str(v)),
    '0W': ('week', r'5[0-3]|[1-4]\d|0[1-9]', r'\d{2}', lambda v: '%02d' % v),
    'DD': ('day', r'3[01]|[12]\d|[1-9]', r'\d+', lambda v: str(v)),
    '0D': ('day', r'3[01]|[12]\d|0[1-9]', r'\d{2}', lambda v: '%02d' % v),
    'MAJOR': ('major', NUMBER, r'\d+', lambda v: str(v)),
    'MINOR': ('minor', NUMBER, r'\d+', lambda v: str(v)),
    'MICRO': ('micro', NUMBER, r'\d+', lambda v: str(v)),
}

CALENDAR_KEYS = ['year', 'month', 'week', 'day']
VERSION_KEYS = ['major', 'minor', 'micro']

TOKEN_RE = re.compile('|'.join(sorted(TOKENS.keys(), key=len, reverse=True)))


@lru_cache(maxsize=32)
def compile_format(fmt):
    """
    Split a format into (token, literal) parts and build the regexes matching it.

    The strict regex enforces calendar ranges and is used for validation. The loose
    one only checks digits and widths, so seeds like 2024.0.0 can still be increased.
    """
    if not fmt or not isinstance(fmt, str):
        raise CalVerError('Invalid calver format: ' + repr(fmt))

    parts = []
    pos = 0
    for m in TOKEN_RE.finditer(fmt):
        if m.start() > pos:
            parts.append((None, fmt[pos:m.start()]))
        parts.append((m.group(0), None))
        pos = m.end()
    if pos < len(fmt):
        parts.append((None, fmt[pos:]))

    if not any(token for token, _ in parts):
        raise CalVerError('Invalid calver format: ' + fmt + ' (no tokens)')
    for _, literal in parts:
        if literal and re.search(r'[A-Z]{2,}', literal):
            raise CalVerError('Invalid calver format: ' + fmt + ' (unknown token in \'' + literal + '\')')

    def regex(index):
        return re.compile('^' + ''.join(
            '(' + TOKENS[token][index] + ')' if token else re.escape(literal)
            for token, literal in parts) + '$')

    return tuple(parts), regex(1), regex(2)


def tokens_of(fmt):
    return [token for token, _ in compile_format(fmt)[0] if token]


def parse(fmt, tag, strict=True):
    """Return the token values of a tag (keyed like format_from expects), or None if it does not match."""
    parts, strict_re, loose_re = compile_format(fmt)
    if not isinstance(tag, str):
        return None
    m = (strict_re if strict else loose_re).match(tag)
    if not m:
        return None

    values = {}
    for token, text in zip(tokens_of(fmt), m.groups()):
        value = int(text)
        if token in ('YY', '0Y'):
            value += 2000
        values[TOKENS[token][0]] = value
    return values


def sort_key(fmt, values):
    return tuple(values[TOKENS[token][0]] for token in tokens_of(fmt))


def is_valid(fmt, tag):
    return parse(fmt, tag) is not None


def latest_of(fmt, tags):
    """Return the chronologically newest valid tag (the first one on ties), or None."""
    latest = None
    latest_key = None
    for tag in tags:
        values = parse(fmt, tag)
        if values is None:
            continue
        key = sort_key(fmt, values)
        if latest is None or key > latest_key:
            latest = tag
            latest_key = key
    return latest


def format_from(fmt, token_values):
    parts = compile_format(fmt)[0]
    result = ''
    for token, literal in parts:
        if token:
            key, _, _, formatter = TOKENS[token]
            result += formatter(int(token_values.get(key, 0)))
        else:
            result += literal
    return result


def calendar_of(now):
    return {
        'year': now.year,
        'month': now.month,
        'week': now.isocalendar()[1],
        'day': now.day,
    }


def reset_from(values, key):
    for k in VERSION_KEYS[VERSION_KEYS.index(key):]:
        if k in values:
            values[k] = 0


def increase(granularity, fmt, tag, now=None):
    """
    Return the successor of a tag at the given granularity.

    'major' moves the calendar to today and resets MAJOR/MINOR/MICRO. When the
    calendar has not advanced it bumps MAJOR instead. 'minor' and 'micro' bump
    their token and reset the less significant ones. Raises CalVerError when the
    format has nothing to increase at that granularity.
    """
    values = parse(fmt, tag, strict=False)
    if values is None:
        raise CalVerError('Invalid calver version ' + repr(tag) + ' for format ' + fmt)

    if granularity == 'major':
        calendar_keys = [TOKENS[t][0] for t in tokens_of(fmt) if TOKENS[t][0] in CALENDAR_KEYS]
        if calendar_keys:
            today = calendar_of(now or date.today())
            if tuple(today[k] for k in calendar_keys) > tuple(values[k] for k in calendar_keys):
                for k in calendar_keys:
                    values[k] = today[k]
                reset_from(values, 'major')
                return format_from(fmt, values)
        if 'major' not in values:
            raise CalVerError('Cannot increase major of ' + tag + ': calendar has not advanced and format ' + fmt + ' has no MAJOR')
        values['major'] += 1
        reset_from(values, 'minor')
        return format_from(fmt, values)

    if granularity not in VERSION_KEYS:
        raise CalVerError('Unknown release type: ' + str(granularity))
    if granularity not in values:
        raise CalVerError('Cannot increase ' + granularity + ' of ' + tag + ': format ' + fmt + ' has no ' + granularity.upper())
    values[granularity] += 1
    if granularity == 'minor':
        reset_from(values, 'micro')
    return format_from(fmt, values)
