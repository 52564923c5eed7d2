"""Image store interface.

The content store lives outside of this package. The service only needs to
resolve a reference to an image id, read the image record and write labels
back after a pull.
"""
import abc
import collections
import logging

from cri_pull_resolver import labels as image_labels
from cri_pull_resolver import reference
from cri_pull_resolver.errors import ImageNotFound, InvalidReference


logger = logging.getLogger(__name__)

Image = collections.namedtuple(
    'Image',
    ['id', 'references', 'size', 'image_spec', 'chain_id', 'pinned', 'labels'],
    defaults=((), 0, None, '', False, None),
)


class ImageStore(metaclass=abc.ABCMeta):
    """Read and label access to stored images."""

    @abc.abstractmethod
    def resolve(self, ref) -> str:
        """Return the image id for a normalized reference, raise ``ImageNotFound`` otherwise."""
        raise NotImplementedError()

    @abc.abstractmethod
    def get(self, image_id) -> Image:
        """Return the image record for ``image_id``, raise ``ImageNotFound`` otherwise."""
        raise NotImplementedError()

    @abc.abstractmethod
    def update(self, image_id, labels, pinned, references=()) -> Image:
        """Merge labels and references into a stored image and set its pinned flag."""
        raise NotImplementedError()


class MemoryImageStore(ImageStore):
    """Image store keeping records in process memory.

    A reference belongs to one image at a time; storing it on another image
    removes it from the previous one.
    """

    def __init__(self, images=()):
        self._images = {}
        self._references = {}
        for image in images:
            self.add(image)

    def add(self, image) -> Image:
        image = image._replace(references=tuple(image.references))
        self._images[image.id] = image
        for ref in image.references:
            self._index(ref, image.id)
        logger.debug('Stored image %s with references %s', image.id, image.references)
        return self._images[image.id]

    @staticmethod
    def _key(ref):
        if reference.is_image_id(ref):
            return None
        try:
            return reference.normalize(ref)
        except InvalidReference:
            logger.warning('Not indexing unparsable reference %r', ref)
            return None

    def _index(self, ref, image_id):
        key = self._key(ref)
        if key is None:
            return
        previous = self._references.get(key)
        if previous is not None and previous != image_id and previous in self._images:
            self._release(previous, key)
        self._references[key] = image_id

    def _release(self, image_id, key):
        image = self._images[image_id]
        self._images[image_id] = image._replace(
            references=tuple(ref for ref in image.references if self._key(ref) != key),
        )
        logger.info('Reference %s moved away from image %s', key, image_id)

    def resolve(self, ref) -> str:
        try:
            return self._references[ref]
        except KeyError:
            raise ImageNotFound(f'image {ref!r} not found') from None

    def get(self, image_id) -> Image:
        try:
            return self._images[image_id]
        except KeyError:
            raise ImageNotFound(f'image {image_id!r} not found') from None

    def update(self, image_id, labels, pinned, references=()) -> Image:
        image = self.get(image_id)
        merged_references = image.references + tuple(
            ref for ref in references if ref not in image.references
        )
        merged_labels = {**(image.labels or {}), **labels}
        image = image._replace(
            labels=merged_labels,
            # a pinned label once set keeps the image pinned
            pinned=pinned or image_labels.is_pinned(merged_labels),
            references=merged_references,
        )
        return self.add(image)


__all__ = ['Image', 'ImageStore', 'MemoryImageStore']
