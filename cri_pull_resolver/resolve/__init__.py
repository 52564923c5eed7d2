from .auth import AuthConfig, Credentials, parse_auth
from .endpoints import default_scheme, registry_endpoints
from .snapshotter import PodSandboxConfig, RUNTIME_HANDLER_ANNOTATION, snapshotter_from_pod_sandbox_config
from .unpack import UnpackOpt, encrypted_images_pull_opts


__all__ = [
    'AuthConfig',
    'Credentials',
    'PodSandboxConfig',
    'RUNTIME_HANDLER_ANNOTATION',
    'UnpackOpt',
    'default_scheme',
    'encrypted_images_pull_opts',
    'parse_auth',
    'registry_endpoints',
    'snapshotter_from_pod_sandbox_config',
]
