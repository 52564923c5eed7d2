"""Image service.

Wires the resolvers together for a pull: snapshotter and unpack options for
the pull itself, endpoints and credentials per registry host, labels for the
stored result. Status requests are answered from the image store.
"""
import collections
import logging

from opentelemetry import trace

from cri_pull_resolver import labels as image_labels
from cri_pull_resolver import reference
from cri_pull_resolver import status
from cri_pull_resolver.errors import ImageNotFound, ImageStatusError, InvalidReference
from cri_pull_resolver.resolve import (
    encrypted_images_pull_opts,
    parse_auth,
    registry_endpoints,
    snapshotter_from_pod_sandbox_config,
)


logger = logging.getLogger(__name__)


class PullPlan(collections.namedtuple('PullPlan',
                                      ['image', 'snapshotter', 'unpack_opts', 'labels', 'auth', 'mirrors'])):
    """Parameters a pull executor is invoked with."""

    @property
    def host(self) -> str:
        return reference.parse_docker_ref(self.image).domain

    @property
    def pinned(self) -> bool:
        return image_labels.is_pinned(self.labels)

    def endpoints(self, host=None) -> list:
        return registry_endpoints(host or self.host, self.mirrors)

    def credentials(self, host):
        return parse_auth(self.auth, host)


class ImageService:
    """Pull planning and image status on top of an image store.

    :param config: ``CriConfig`` snapshot.
    :param store: ``ImageStore`` holding pulled images.
    :param executor: coroutine function taking a ``PullPlan`` and returning
        the pulled ``Image``; performs the actual transfer.
    """

    def __init__(self, config, store, executor=None):
        self.config = config
        self.store = store
        self.executor = executor

    def plan_pull(self, image, auth=None, sandbox_config=None) -> PullPlan:
        ref = reference.normalize(image)
        snapshotter = snapshotter_from_pod_sandbox_config(
            sandbox_config, self.config.runtimes, self.config.snapshotter, image_ref=ref,
        )
        return PullPlan(
            image=ref,
            snapshotter=snapshotter,
            unpack_opts=encrypted_images_pull_opts(self.config.key_model),
            labels=image_labels.image_labels(self.config.sandbox_image, image),
            auth=auth,
            mirrors=self.config.mirrors,
        )

    async def pull_image(self, image, auth=None, sandbox_config=None) -> str:
        """Pull ``image`` through the executor and label the result. Returns the image id."""

        plan = self.plan_pull(image, auth=auth, sandbox_config=sandbox_config)
        logger.info('Pulling %s with snapshotter %s', plan.image, plan.snapshotter)

        pulled = await self.executor(plan)
        self.store.update(pulled.id, plan.labels, plan.pinned, references=(plan.image,))
        logger.info('Pulled %s as %s', plan.image, pulled.id)
        return pulled.id

    def local_resolve(self, ref_or_id):
        """Find a stored image by image id or by reference."""

        image_id = None
        if not reference.DIGEST_RE.match(ref_or_id):
            try:
                image_id = self.store.resolve(reference.normalize(ref_or_id))
            except (InvalidReference, ImageNotFound):
                image_id = None
        return self.store.get(image_id or ref_or_id)

    def image_status(self, image, verbose=False) -> status.ImageStatusResponse:
        """Status of a stored image, an empty response when it is not present."""

        span = trace.get_current_span()
        try:
            record = self.local_resolve(image)
        except ImageNotFound as exc:
            span.add_event(str(exc))
            return status.ImageStatusResponse()
        except Exception as exc:
            raise ImageStatusError(f'can not resolve {image!r} locally: {exc}') from exc

        span.set_attribute('image.id', record.id)
        return status.ImageStatusResponse(
            image=status.to_cri_image(record),
            info=status.to_cri_image_info(record, verbose),
        )


__all__ = ['ImageService', 'PullPlan']
