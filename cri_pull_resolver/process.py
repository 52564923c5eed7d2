"""Translation between JSON request bodies and resolver types."""
from cri_pull_resolver.resolve import AuthConfig, PodSandboxConfig


AUTH_FIELDS = {
    'username': 'username',
    'password': 'password',
    'auth': 'auth',
    'server_address': 'server_address',
    'serverAddress': 'server_address',
    'identity_token': 'identity_token',
    'identityToken': 'identity_token',
}


def auth_from_payload(payload):
    """Build ``AuthConfig`` from a request ``auth`` object, accepting both key spellings."""

    if payload is None:
        return None
    assert isinstance(payload, dict), 'auth must be an object'
    fields = {}
    for key, value in payload.items():
        if key not in AUTH_FIELDS or value is None:
            continue
        assert isinstance(value, str), f'auth.{key} must be a string'
        if value:
            fields[AUTH_FIELDS[key]] = value
    return AuthConfig(**fields)


def sandbox_config_from_payload(payload):
    if payload is None:
        return None
    assert isinstance(payload, dict), 'sandbox_config must be an object'
    annotations = payload.get('annotations')
    assert annotations is None or isinstance(annotations, dict), 'annotations must be an object'
    assert all(isinstance(value, str) for value in (annotations or {}).values()), \
        'annotation values must be strings'
    return PodSandboxConfig(annotations=annotations)


def image_from_payload(request_payload) -> str:
    assert isinstance(request_payload, dict), 'request body must be an object'
    image = request_payload.get('image')
    assert image and isinstance(image, str), 'image is required'
    return image


def verbose_from_payload(request_payload) -> bool:
    verbose = request_payload.get('verbose', False)
    assert isinstance(verbose, bool), 'verbose must be a boolean'
    return verbose


def status_response(response) -> dict:
    if response.image is None:
        return {'image': None, 'info': None}
    return {'image': response.image._asdict(), 'info': response.info}


def plan_response(plan) -> dict:
    """Describe a pull plan. Secrets never leave the process, only whether there are any."""

    host = plan.host
    username, secret = plan.credentials(host)
    return {
        'image': plan.image,
        'snapshotter': plan.snapshotter,
        'unpack_opts': [{'kind': opt.kind, 'params': dict(opt.params)} for opt in plan.unpack_opts],
        'labels': plan.labels,
        'endpoints': plan.endpoints(host),
        'auth': {'username': username, 'has_secret': bool(secret)},
    }


def error_response(msg) -> dict:
    return {'error': msg}


__all__ = [
    'auth_from_payload',
    'error_response',
    'image_from_payload',
    'verbose_from_payload',
    'plan_response',
    'sandbox_config_from_payload',
    'status_response',
]
