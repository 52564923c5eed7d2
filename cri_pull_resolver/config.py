"""Image service configuration.

Configuration is read once from a YAML document and handed to every resolver
as an immutable snapshot. Reloading means building a new ``CriConfig``.
"""
import collections
import logging
import types

import yaml


logger = logging.getLogger(__name__)

KEY_MODEL_NODE = 'node'
DEFAULT_SNAPSHOTTER = 'overlayfs'
DEFAULT_SANDBOX_IMAGE = 'registry.k8s.io/pause:3.9'

Runtime = collections.namedtuple('Runtime', ['type', 'snapshotter'], defaults=('', ''))

CriConfig = collections.namedtuple(
    'CriConfig',
    ['sandbox_image', 'snapshotter', 'runtimes', 'mirrors', 'key_model'],
    defaults=(DEFAULT_SANDBOX_IMAGE, DEFAULT_SNAPSHOTTER, types.MappingProxyType({}),
              types.MappingProxyType({}), ''),
)


def _section(document, *path) -> dict:
    for key in path:
        document = (document or {}).get(key)
    return document or {}


def config_from_dict(document) -> CriConfig:
    """Build configuration from a parsed YAML mapping."""

    mirrors = {
        host: tuple(mirror.get('endpoint') or ())
        for host, mirror in _section(document, 'registry', 'mirrors').items()
    }
    runtimes = {
        name: Runtime(
            type=runtime.get('runtime_type', ''),
            snapshotter=runtime.get('snapshotter', ''),
        )
        for name, runtime in _section(document, 'containerd', 'runtimes').items()
    }
    return CriConfig(
        sandbox_image=_section(document).get('sandbox_image') or DEFAULT_SANDBOX_IMAGE,
        snapshotter=_section(document, 'containerd').get('snapshotter') or DEFAULT_SNAPSHOTTER,
        runtimes=types.MappingProxyType(runtimes),
        mirrors=types.MappingProxyType(mirrors),
        key_model=_section(document, 'image_decryption').get('key_model') or '',
    )


def load_config(path) -> CriConfig:
    """Load configuration from a YAML file. A missing path gives defaults."""

    if not path:
        logger.info('No config file given, using defaults')
        return CriConfig()

    with open(path) as fl:
        document = yaml.load(fl, Loader=yaml.SafeLoader)
    logger.info('Loaded config file %s', path)
    return config_from_dict(document)


__all__ = ['CriConfig', 'Runtime', 'KEY_MODEL_NODE', 'config_from_dict', 'load_config']
