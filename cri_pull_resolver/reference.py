"""Image reference parsing.

Parses ``[domain/]path[:tag][@digest]`` references and normalizes them the
way docker does: implicit ``docker.io`` domain, ``library/`` namespace for
single component names, ``latest`` when neither tag nor digest is given.
"""
import collections
import re

from cri_pull_resolver.errors import InvalidReference


DEFAULT_DOMAIN = 'docker.io'
LEGACY_DEFAULT_DOMAIN = 'index.docker.io'
OFFICIAL_REPO_PREFIX = 'library/'
DEFAULT_TAG = 'latest'

TAG_RE = re.compile(r'^[\w][\w.-]{0,127}$')
DIGEST_RE = re.compile(r'^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[0-9a-fA-F]{32,}$')
IMAGE_ID_RE = re.compile(r'^[a-z0-9]+:[0-9a-f]{64}$')
PATH_COMPONENT_RE = re.compile(r'^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$')
DOMAIN_RE = re.compile(
    r'^(?:\[[0-9a-fA-F:.]+\]'
    r'|[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]*[a-zA-Z0-9])?)*)'
    r'(?::[0-9]+)?$'
)


class Reference(collections.namedtuple('Reference', ['domain', 'path', 'tag', 'digest'])):
    """Fully qualified image reference. ``tag`` and ``digest`` may be empty."""

    @property
    def name(self) -> str:
        return f'{self.domain}/{self.path}'

    def string(self) -> str:
        ref = self.name
        if self.tag:
            ref += f':{self.tag}'
        if self.digest:
            ref += f'@{self.digest}'
        return ref

    def with_default_tag(self) -> 'Reference':
        if not self.tag and not self.digest:
            return self._replace(tag=DEFAULT_TAG)
        return self

    def normalized(self) -> 'Reference':
        """Identity form: digest wins over tag, bare names get ``latest``."""
        if self.digest:
            return self._replace(tag='')
        return self.with_default_tag()

    def same_image(self, other) -> bool:
        """Compare by digest when both carry one, by name and tag otherwise."""
        if self.name != other.name:
            return False
        if self.digest and other.digest:
            return self.digest == other.digest
        return (self.tag or DEFAULT_TAG) == (other.tag or DEFAULT_TAG)


def _split_domain(name):
    first, sep, remainder = name.partition('/')
    if not sep or ('.' not in first and ':' not in first and first != 'localhost'
                   and first.lower() == first):
        domain, remainder = DEFAULT_DOMAIN, name
    else:
        domain = first
    if domain == LEGACY_DEFAULT_DOMAIN:
        domain = DEFAULT_DOMAIN
    if domain == DEFAULT_DOMAIN and '/' not in remainder:
        remainder = OFFICIAL_REPO_PREFIX + remainder
    return domain, remainder


def parse_docker_ref(ref) -> Reference:
    """Parse a possibly familiar reference into its fully qualified form."""

    if not ref or not isinstance(ref, str):
        raise InvalidReference(f'invalid reference format: {ref!r}')

    name, _, digest = ref.partition('@')
    tag = None
    colon = name.rfind(':')
    if colon > name.rfind('/'):
        name, tag = name[:colon], name[colon + 1:]

    if tag is not None and not TAG_RE.match(tag):
        raise InvalidReference(f'invalid tag {tag!r} in {ref!r}')
    if '@' in ref and not DIGEST_RE.match(digest):
        raise InvalidReference(f'invalid digest {digest!r} in {ref!r}')

    domain, path = _split_domain(name)
    if not DOMAIN_RE.match(domain):
        raise InvalidReference(f'invalid domain {domain!r} in {ref!r}')
    if path.lower() != path:
        raise InvalidReference(f'repository name must be lowercase: {ref!r}')
    for component in path.split('/'):
        if not PATH_COMPONENT_RE.match(component):
            raise InvalidReference(f'invalid reference format: {ref!r}')

    return Reference(domain=domain, path=path, tag=tag or '', digest=digest)


def is_image_id(ref) -> bool:
    """Image ids (``sha256:<hex>``) are not references to a repository."""
    return bool(IMAGE_ID_RE.match(ref))


def normalize(ref) -> str:
    """Render ``ref`` in its identity form, see :meth:`Reference.normalized`."""
    return parse_docker_ref(ref).normalized().string()


__all__ = ['Reference', 'parse_docker_ref', 'normalize', 'is_image_id', 'DEFAULT_TAG']
