from collections import namedtuple

from image_reference import DOCKER_HUB, DOCKER_HUB_API


RegistryAPIDescriptor = namedtuple('RegistryAPIDescriptor', ['url', 'extract_tags'])


def docker_hub_url(scheme, registry_host, repository_path):
    return scheme + '://' + DOCKER_HUB_API + '/v2/repositories/' + repository_path + '/tags'


def docker_hub_tags(data):
    results = data.get('results') if isinstance(data, dict) else None
    if not isinstance(results, list):
        return []
    return [t['name'] for t in results if isinstance(t, dict) and 'name' in t]


def registry_v2_url(scheme, registry_host, repository_path):
    return scheme + '://' + registry_host + '/v2/' + repository_path + '/tags/list'


def registry_v2_tags(data):
    tags = data.get('tags') if isinstance(data, dict) else None
    if not isinstance(tags, list):
        return []
    return list(tags)


# registry host -> (url builder, tag extractor)
REGISTRY_APIS = {
    DOCKER_HUB: (docker_hub_url, docker_hub_tags),
}
GENERIC_REGISTRY_API = (registry_v2_url, registry_v2_tags)


def resolve(registry_host, scheme, repository_path):
    """Describe how to list the tags of a repository; unknown hosts speak the generic Registry v2 API."""
    build_url, extract_tags = REGISTRY_APIS.get(registry_host, GENERIC_REGISTRY_API)
    return RegistryAPIDescriptor(build_url(scheme, registry_host, repository_path), extract_tags)
