"""Image status assembly.

Converts stored image records into the descriptor reported to the
orchestrator.
"""
import collections
import json
import logging
import re

from cri_pull_resolver import reference
from cri_pull_resolver.errors import InvalidReference


logger = logging.getLogger(__name__)

CRIImage = collections.namedtuple(
    'CRIImage', ['id', 'repo_tags', 'repo_digests', 'size', 'uid', 'username', 'pinned'],
)
ImageStatusResponse = collections.namedtuple('ImageStatusResponse', ['image', 'info'], defaults=(None, None))

UID_RE = re.compile(r'^[+-]?[0-9]+$')


def parse_image_references(references) -> tuple:
    """Split references into repo tags and repo digests.

    A reference carrying both a tag and a digest contributes to both lists.
    """

    repo_tags, repo_digests = [], []
    for ref in references:
        if reference.is_image_id(ref):
            continue
        try:
            parsed = reference.parse_docker_ref(ref)
        except InvalidReference:
            logger.debug('Skipping unparsable image reference %r', ref)
            continue
        if parsed.tag:
            repo_tags.append(parsed._replace(digest='').string())
        if parsed.digest:
            repo_digests.append(parsed._replace(tag='').string())
    return repo_tags, repo_digests


def get_user_from_image(user) -> tuple:
    """Return ``(uid, username)`` from an image config user, at most one is set."""

    if not user:
        return None, ''
    user = user.split(':', 1)[0]
    if UID_RE.match(user):
        return int(user), ''
    return None, user


def to_cri_image(image) -> CRIImage:
    repo_tags, repo_digests = parse_image_references(image.references)
    uid, username = get_user_from_image(
        ((image.image_spec or {}).get('config') or {}).get('User', ''),
    )
    return CRIImage(
        id=image.id,
        repo_tags=repo_tags,
        repo_digests=repo_digests,
        size=image.size,
        uid=uid,
        username=username,
        pinned=image.pinned,
    )


def to_cri_image_info(image, verbose) -> dict:
    """Verbose image info map, ``None`` unless verbose.

    Serialization problems are reported inside the map instead of failing
    the status call.
    """

    if not verbose:
        return None

    info = {'chainID': image.chain_id, 'imageSpec': image.image_spec or {}}
    try:
        return {'info': json.dumps(info)}
    except (TypeError, ValueError) as exc:
        logger.error('Failed to marshal info %r: %s', info, exc)
        return {'info': str(exc)}


__all__ = [
    'CRIImage',
    'ImageStatusResponse',
    'get_user_from_image',
    'parse_image_references',
    'to_cri_image',
    'to_cri_image_info',
]
