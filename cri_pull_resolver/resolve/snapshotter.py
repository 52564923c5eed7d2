import collections
import logging

from cri_pull_resolver.errors import UnknownRuntimeHandler


logger = logging.getLogger(__name__)

RUNTIME_HANDLER_ANNOTATION = 'io.containerd.cri.runtime-handler'

PodSandboxConfig = collections.namedtuple('PodSandboxConfig', ['annotations'], defaults=(None,))


def runtime_snapshotter(runtime, default_snapshotter) -> str:
    return runtime.snapshotter or default_snapshotter


def snapshotter_from_pod_sandbox_config(sandbox_config, runtimes, default_snapshotter,
                                        image_ref='') -> str:
    """Pick the snapshotter for a pull from the pod's runtime handler annotation."""

    if sandbox_config is None or not sandbox_config.annotations:
        return default_snapshotter

    runtime_handler = sandbox_config.annotations.get(RUNTIME_HANDLER_ANNOTATION)
    if not runtime_handler:
        return default_snapshotter

    if runtime_handler not in runtimes:
        raise UnknownRuntimeHandler(f'no runtime for {runtime_handler!r} is configured')

    snapshotter = runtime_snapshotter(runtimes[runtime_handler], default_snapshotter)
    logger.info('Pull %r for runtime %s uses snapshotter %s', image_ref, runtime_handler, snapshotter)
    return snapshotter


__all__ = ['PodSandboxConfig', 'RUNTIME_HANDLER_ANNOTATION', 'snapshotter_from_pod_sandbox_config']
