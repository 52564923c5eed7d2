import ipaddress
import logging
import urllib.parse

from cri_pull_resolver.errors import MalformedMirrorEndpoint


logger = logging.getLogger(__name__)

WILDCARD = '*'
DOCKER_HUB_HOST = 'docker.io'
DOCKER_HUB_REGISTRY_HOST = 'registry-1.docker.io'


def _strip_port(host) -> str:
    if host.startswith('[') and ']' in host:
        return host[1:].partition(']')[0]
    if host.count(':') == 1:
        return host.partition(':')[0]
    return host


def is_localhost(host) -> bool:
    """Lexical loopback check, no name lookup is performed."""

    host = _strip_port(host)
    if host == 'localhost':
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def default_scheme(host) -> str:
    """Plain http for loopback registries, https for everything else."""
    return 'http' if is_localhost(host) else 'https'


def default_host(host) -> str:
    if host == DOCKER_HUB_HOST:
        return DOCKER_HUB_REGISTRY_HOST
    return host


def endpoint_host(endpoint) -> str:
    """Return the ``host[:port]`` part of a scheme-qualified endpoint."""

    try:
        parsed = urllib.parse.urlsplit(endpoint)
        # port is validated lazily by urllib
        parsed.port
    except ValueError as exc:
        raise MalformedMirrorEndpoint(f'parse endpoint {endpoint!r}: {exc}') from exc

    host = parsed.netloc.rpartition('@')[2]
    if not host or not parsed.hostname or any(ch.isspace() for ch in host):
        raise MalformedMirrorEndpoint(f'parse endpoint {endpoint!r}: missing host')
    return host


def add_default_scheme(endpoint) -> str:
    if '://' in endpoint:
        return endpoint
    host = endpoint_host(f'dummy://{endpoint}')
    return f'{default_scheme(host)}://{endpoint}'


def registry_endpoints(host, mirrors) -> list:
    """Ordered endpoints to try when pulling from ``host``.

    Mirrors configured for ``host`` (or the wildcard entry when there are
    none) come first, in configured order. The registry itself is appended
    unless one of the mirrors already points at it.
    """

    if host in mirrors:
        configured = mirrors[host]
    else:
        configured = mirrors.get(WILDCARD, ())

    endpoints = [add_default_scheme(endpoint) for endpoint in configured]
    hosts = [endpoint_host(endpoint) for endpoint in endpoints]

    for endpoint, endpoint_netloc in zip(endpoints, hosts):
        if endpoint_netloc == host:
            logger.debug('Registry %s already covered by mirror %s', host, endpoint)
            return endpoints

    registry_host = default_host(host)
    endpoints.append(f'{default_scheme(registry_host)}://{registry_host}')
    return endpoints


__all__ = ['default_scheme', 'is_localhost', 'registry_endpoints', 'add_default_scheme']
