"""Errors raised while resolving pull parameters."""


class ResolverError(Exception):
    """Base class for request-scoped resolution failures."""

    status = 400

    def __init__(self, msg):
        super().__init__(msg)
        self.msg = msg


class InvalidAuthEncoding(ResolverError):
    """Combined auth blob can not be decoded into username and password."""


class UnknownRuntimeHandler(ResolverError):
    """Pod sandbox names a runtime handler that is not configured."""


class MalformedMirrorEndpoint(ResolverError):
    """Configured mirror endpoint is not a host or URL."""


class InvalidReference(ResolverError):
    """Image reference does not parse."""


class ImageNotFound(ResolverError):

    status = 404


class ImageStatusError(ResolverError):

    status = 500


__all__ = [
    'ResolverError',
    'InvalidAuthEncoding',
    'UnknownRuntimeHandler',
    'MalformedMirrorEndpoint',
    'InvalidReference',
    'ImageNotFound',
    'ImageStatusError',
]
