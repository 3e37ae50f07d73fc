import logging
from typing import Mapping, Any, Optional, Callable

from requests import PreparedRequest
from requests.auth import AuthBase, HTTPBasicAuth
from requests_jwtauth import HTTPBearerAuth, JWTSecretAuth

logger = logging.getLogger(__name__)


class TokenProviderAuth(AuthBase):
    """Bearer token authentication where the token comes from a callable.
    The provider is called once per request, so it is free to refresh or
    rotate the token between requests."""
    def __init__(self, get_auth_token: Callable[[], str]):
        self.get_auth_token = get_auth_token

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        request.headers['Authorization'] = f'Bearer {self.get_auth_token()}'
        return request


class TokenFile:
    """Token provider that re-reads a token file on every call, so a token
    rotated on disk by another process is picked up by the next request.

    The file must be readable when the provider is created. If a later read
    fails, the last token read is used again and a warning is logged."""
    def __init__(self, path: str):
        self.path = path
        self.token = self.read()

    def read(self) -> str:
        with open(self.path, 'r') as token_file:
            return token_file.read().strip()

    def __call__(self) -> str:
        try:
            self.token = self.read()
        except OSError as e:
            logger.warning(f'Unable to re-read auth token from {self.path}, reusing the previous token: {e}')
        return self.token


class ClientCertAuth(AuthBase):
    def __init__(self, cert: str, key: str):
        self.cert = cert
        self.key = key

    def __call__(self, request: PreparedRequest) -> PreparedRequest:
        request.cert = (self.cert, self.key)
        return request


def get_authenticator(config: Mapping[str, Any]) -> Optional[AuthBase]:
    """Build the authenticator for a `POD` configuration section. The first
    of these that is configured wins: `AUTH_TOKEN`, `AUTH_TOKEN_FILE`,
    `JWT_SECRET`, `CLIENT_CERT` and `CLIENT_KEY`, `POD_USER` and
    `POD_PASSWORD`."""
    if 'AUTH_TOKEN' in config:
        return HTTPBearerAuth(token=config['AUTH_TOKEN'])
    elif 'AUTH_TOKEN_FILE' in config:
        try:
            return TokenProviderAuth(TokenFile(config['AUTH_TOKEN_FILE']))
        except OSError as e:
            raise RuntimeError(f"Unable to read AUTH_TOKEN_FILE {config['AUTH_TOKEN_FILE']!r}: {e}") from e
    elif 'JWT_SECRET' in config:
        return JWTSecretAuth(
            secret=config['JWT_SECRET'],
            claims={
                'sub': 'solidpod',
                'iss': 'solidpod',
            }
        )
    elif 'CLIENT_CERT' in config and 'CLIENT_KEY' in config:
        return ClientCertAuth(
            cert=config['CLIENT_CERT'],
            key=config['CLIENT_KEY'],
        )
    elif 'POD_USER' in config and 'POD_PASSWORD' in config:
        return HTTPBasicAuth(
            username=config['POD_USER'],
            password=config['POD_PASSWORD'],
        )
    else:
        return None
