import collections
import types

from cri_pull_resolver.config import KEY_MODEL_NODE


UnpackOpt = collections.namedtuple('UnpackOpt', ['kind', 'params'])

DECRYPT_ON_UNPACK = UnpackOpt('decrypt', types.MappingProxyType({'key_model': KEY_MODEL_NODE}))


def encrypted_images_pull_opts(key_model) -> list:
    """Unpack options for encrypted images. Decryption is off unless the node key model is set."""

    if key_model == KEY_MODEL_NODE:
        return [DECRYPT_ON_UNPACK]
    return []


__all__ = ['UnpackOpt', 'encrypted_images_pull_opts']
