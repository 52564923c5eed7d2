import base64
import collections
import logging
import urllib.parse

from cri_pull_resolver.errors import InvalidAuthEncoding


logger = logging.getLogger(__name__)

AuthConfig = collections.namedtuple(
    'AuthConfig',
    ['username', 'password', 'auth', 'server_address', 'identity_token'],
    defaults=('', '', '', '', ''),
)
Credentials = collections.namedtuple('Credentials', ['username', 'secret'])

ANONYMOUS = Credentials('', '')


def _server_host(server_address) -> str:
    if '://' not in server_address:
        server_address = f'//{server_address}'
    try:
        parsed = urllib.parse.urlsplit(server_address)
    except ValueError as exc:
        raise InvalidAuthEncoding(f'parse server address {server_address!r}: {exc}') from exc
    return parsed.netloc.rpartition('@')[2]


def decode_auth(blob) -> Credentials:
    """Decode base64 ``username:password``."""

    try:
        decoded = base64.b64decode(blob, validate=True).decode()
    except (ValueError, UnicodeDecodeError) as exc:
        raise InvalidAuthEncoding(f'invalid auth encoding: {exc}') from exc

    username, sep, password = decoded.partition(':')
    if not sep:
        raise InvalidAuthEncoding(f'invalid decoded auth: {decoded!r}')
    return Credentials(username, password.strip('\x00'))


def parse_auth(auth, host) -> Credentials:
    """Credentials to present to ``host``.

    An auth config scoped to another server address yields anonymous
    credentials. Identity token wins over the auth blob, which wins over an
    explicit username and password.
    """

    if auth is None:
        return ANONYMOUS

    if auth.server_address:
        server_host = _server_host(auth.server_address)
        if server_host != host:
            logger.debug('Auth for %s does not apply to %s', server_host, host)
            return ANONYMOUS

    if auth.identity_token:
        return Credentials('', auth.identity_token)
    if auth.auth:
        return decode_auth(auth.auth)
    if auth.username or auth.password:
        return Credentials(auth.username, auth.password)

    # empty auth config means anonymous access
    return ANONYMOUS


__all__ = ['AuthConfig', 'Credentials', 'parse_auth', 'decode_auth']
