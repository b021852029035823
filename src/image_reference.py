from collections import namedtuple

from errors import InvalidReferenceError


ImageReference = namedtuple('ImageReference', ['registry_host', 'api_host', 'repository_path'])

DOCKER_HUB = 'docker.io'
DOCKER_HUB_API = 'hub.docker.com'

DOCKER_HOSTS = [
    'index.docker.io',
    'index.docker.com',
    'registry.docker.io',
    'registry.docker.com',
    'registry-1.docker.io',
    'registry-1.docker.com',
    'docker.io',
    'docker.com',
]

LOCAL_REGISTRY_MARKERS = ['localhost', 'localregistry']


def is_registry_host(segment):
    return '.' in segment or ':' in segment or segment in LOCAL_REGISTRY_MARKERS


def strip_tag_and_digest(repository_path):
    """Drop a trailing ':tag' or '@digest' from the last path segment."""
    head, _, name = repository_path.rpartition('/')
    name = name.split('@', 1)[0].split(':', 1)[0]
    return head + '/' + name if head else name


def parse(reference):
    """
    Split an image reference into the host to read tags from and the repository path.

    Examples:
        - redis -> docker.io, library/redis
        - myuser/app -> docker.io, myuser/app
        - ghcr.io/redis -> ghcr.io, redis
        - localhost:5000/team/app -> localhost:5000, team/app
    """
    if not reference or not isinstance(reference, str):
        raise InvalidReferenceError('Invalid image reference: ' + repr(reference))

    parts = reference.split('/')
    if len(parts) > 1 and is_registry_host(parts[0]):
        registry_host = parts[0]
        repository_path = '/'.join(parts[1:])
    else:
        registry_host = DOCKER_HUB
        repository_path = reference

    if registry_host in DOCKER_HOSTS:
        registry_host = DOCKER_HUB

    repository_path = strip_tag_and_digest(repository_path)
    if not repository_path or repository_path.endswith('/'):
        raise InvalidReferenceError('Invalid image reference: ' + repr(reference))

    # only Docker Hub has the implicit "library" namespace
    if registry_host == DOCKER_HUB:
        if repository_path.startswith('_/'):
            repository_path = 'library/' + repository_path[2:]
        if '/' not in repository_path:
            repository_path = 'library/' + repository_path

    api_host = DOCKER_HUB_API if registry_host == DOCKER_HUB else registry_host
    return ImageReference(registry_host, api_host, repository_path)
