import logging

from cri_pull_resolver import reference
from cri_pull_resolver.errors import InvalidReference


logger = logging.getLogger(__name__)

IMAGE_LABEL_KEY = 'io.cri-containerd.image'
IMAGE_LABEL_VALUE = 'managed'
PINNED_IMAGE_LABEL_KEY = 'io.cri-containerd.pinned'
PINNED_IMAGE_LABEL_VALUE = 'pinned'


def image_labels(sandbox_image, name) -> dict:
    """Labels for a pulled image. The sandbox image is also pinned."""

    labels = {IMAGE_LABEL_KEY: IMAGE_LABEL_VALUE}

    try:
        sandbox_ref = reference.parse_docker_ref(sandbox_image)
    except InvalidReference as exc:
        logger.warning('Failed to parse sandbox image %r: %s', sandbox_image, exc)
        return labels

    try:
        image_ref = reference.parse_docker_ref(name)
    except InvalidReference as exc:
        logger.warning('Failed to parse image %r: %s', name, exc)
        return labels

    if sandbox_ref.same_image(image_ref):
        labels[PINNED_IMAGE_LABEL_KEY] = PINNED_IMAGE_LABEL_VALUE
    return labels


def is_pinned(labels) -> bool:
    return labels.get(PINNED_IMAGE_LABEL_KEY) == PINNED_IMAGE_LABEL_VALUE


__all__ = ['image_labels', 'is_pinned', 'IMAGE_LABEL_KEY', 'PINNED_IMAGE_LABEL_KEY']
