import logging
import re
from enum import Enum
from http import HTTPStatus
from typing import Any, Iterable, Mapping, NamedTuple, Optional, Callable

import requests
from requests import Response, Session
from requests.auth import AuthBase
from urlobject import URLObject

from solidpod.client.auth import TokenProviderAuth
from solidpod.client.codec import encode, decode
from solidpod.namespaces import ldp, type_link

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
"""Seconds to wait for the pod to respond before giving up on a request"""

# characters that would change the meaning of a composed URL
UNSAFE_NAME_CHARS = re.compile(r'[/?#\s\x00-\x1f\x7f]')


def is_success(status_code: int) -> bool:
    """Only 2xx responses count as success; redirects do not."""
    return 200 <= status_code < 300


def status_phrase(status_code: int) -> str:
    """Standard reason phrase for `status_code`, or an empty string if the
    code is not a registered HTTP status."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return ''


def check_name(name: str, kind: str = 'container') -> str:
    """Return `name` unchanged if it can be used as a single path segment
    of a pod URL. Names are never escaped, so an empty name, or one that
    contains `/`, `?`, `#`, whitespace, or a control character, raises a
    `ValueError` instead."""
    if not isinstance(name, str) or name == '':
        raise ValueError(f'{kind.capitalize()} name must be a non-empty string')
    if UNSAFE_NAME_CHARS.search(name):
        raise ValueError(f'{kind.capitalize()} name "{name}" is not URL-safe')
    return name


class ErrorKind(Enum):
    """Categories of failure reported by `OperationResult`."""

    TRANSPORT = 'transport'
    """The request never got a response (connection refused, DNS failure, etc.)"""

    TIMEOUT = 'timeout'
    """The pod did not respond within the client's timeout; usually worth retrying"""

    STATUS = 'status'
    """The pod responded with a non-success HTTP status"""

    BODY = 'body'
    """The response body was missing or could not be decoded"""

    CONFLICT = 'conflict'
    """A conditional write could not be applied because the resource changed
    (or could not be versioned) since it was read"""


class OperationResult(NamedTuple):
    """Outcome of a pod operation, for callers that want more than the
    log output. Evaluates as `True` in a boolean context only on success.

    ```pycon
    >>> result = client.read_data_result('data', 'log.txt')
    >>> if result:
    ...     print(result.value)
    ... else:
    ...     print(result.error, result.status_code)
    ```
    """

    ok: bool
    value: Any = None
    status_code: Optional[int] = None
    error: Optional[ErrorKind] = None
    detail: str = ''
    etag: Optional[str] = None

    def __bool__(self):
        return self.ok

    @classmethod
    def success(cls, value: Any = None, status_code: int = None, etag: str = None) -> 'OperationResult':
        return cls(ok=True, value=value, status_code=status_code, etag=etag)

    @classmethod
    def failure(
            cls,
            error: ErrorKind,
            status_code: int = None,
            detail: str = '',
            value: Any = None,
    ) -> 'OperationResult':
        return cls(ok=False, value=value, status_code=status_code, error=error, detail=detail)


class TransportError(Exception):
    """Raised by `Client.request()` when no HTTP response was received."""
    def __init__(self, message: str, kind: ErrorKind = ErrorKind.TRANSPORT):
        super().__init__(message)
        self.kind = kind


class Pod:
    """Base location of a pod, and the URLs of the containers and
    resources within it.

    ```pycon
    >>> pod = Pod('http://localhost:3000/alice/')

    >>> pod.url
    URLObject('http://localhost:3000/alice')

    >>> pod.base_url
    URLObject('http://localhost:3000/alice/')

    >>> pod.container_url('data')
    'http://localhost:3000/alice/data/'

    >>> pod.resource_url('data', 'log.txt')
    'http://localhost:3000/alice/data/log.txt'
    ```
    """

    def __init__(self, url: str):
        if not url:
            raise ValueError('Pod URL is required')
        self._base_url = URLObject(url)
        self._url = URLObject(url.rstrip('/'))

    @property
    def url(self) -> URLObject:
        """Pod base URL, without a trailing slash. Read-only."""
        return self._url

    @property
    def base_url(self) -> URLObject:
        """Pod base URL exactly as given. Containers are created by POSTing
        here. Read-only."""
        return self._base_url

    def __str__(self):
        return str(self._url)

    def container_url(self, container_name: str) -> str:
        return f'{self._url}/{check_name(container_name, "container")}/'

    def resource_url(self, container_name: str, file_name: str) -> str:
        return self.container_url(container_name) + check_name(file_name, 'file')


class SessionHeaderAttribute:
    """Descriptor that maps an attribute to a session header name. Requires
    the instance to have a `session` attribute with a `headers` attribute whose
    value is a mapping that supports the methods `get()` and `update()`, plus
    the `del` operator."""

    def __init__(self, header_name: str):
        self.header_name = header_name
        """The HTTP header name"""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner):
        if instance is None:
            return self
        return instance.session.headers.get(self.header_name, None)

    def __set__(self, instance, value):
        if value is not None:
            instance.session.headers.update({self.header_name: str(value)})

    def __delete__(self, instance):
        try:
            del instance.session.headers[self.header_name]
        except KeyError:
            pass


class Client:
    """HTTP client bound to a single pod."""
    ua_string = SessionHeaderAttribute('User-Agent')
    """`User-Agent` header value"""
    session: Session
    """Underlying Requests library
    [Session object](https://requests.readthedocs.io/en/latest/user/advanced/#session-objects),
    or a subclass thereof"""

    def __init__(
        self,
        pod: Pod | str,
        auth: AuthBase = None,
        server_cert: str = None,
        ua_string: str = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Session = None,
    ):
        self.pod: Pod = pod if isinstance(pod, Pod) else Pod(pod)
        """The pod this client talks to"""

        self.timeout = timeout
        """Per-request timeout, in seconds"""

        if session is None:
            # defaults to a basic requests.Session object
            self.session = Session()
        else:
            # otherwise, use the session object as is
            self.session = session

        self.session.auth = auth
        if server_cert is not None:
            self.session.verify = server_cert

        self.ua_string = ua_string

    def request(self, method: str, url: str, **kwargs) -> Response:
        """Send an HTTP request using the configured `session`. Additional
        keyword arguments are passed to the underlying `session.request()`
        method. Unless a `timeout` argument is given, the client's `timeout`
        is used.

        Raises a `TransportError` if no response was received; its `kind` is
        `ErrorKind.TIMEOUT` if the request timed out."""
        kwargs.setdefault('timeout', self.timeout)
        logger.debug(f'{method} {url}')
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.exceptions.Timeout as e:
            logger.error(f'Timed out: {method} {url}')
            raise TransportError(f'Timed out after {kwargs["timeout"]} seconds: {e}', ErrorKind.TIMEOUT) from e
        except requests.exceptions.RequestException as e:
            message = ' '.join(str(arg) for arg in e.args)
            logger.error(message)
            raise TransportError(f'Connection error: {message}') from e
        reason = response.reason or status_phrase(response.status_code)
        logger.debug(f'{response.status_code} {reason}')
        return response

    def post(self, url: str, **kwargs) -> Response:
        """Send an HTTP POST request using the configured session."""
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> Response:
        """Send an HTTP PUT request using the configured session."""
        return self.request('PUT', url, **kwargs)

    def head(self, url: str, **kwargs) -> Response:
        """Send an HTTP HEAD request using the configured session."""
        return self.request('HEAD', url, **kwargs)

    def get(self, url: str, **kwargs) -> Response:
        """Send an HTTP GET request using the configured session."""
        return self.request('GET', url, **kwargs)

    def exists(self, url: str, **kwargs) -> bool:
        """Metadata-only existence check; only `200 OK` counts."""
        response = self.head(url, **kwargs)
        return response.status_code == HTTPStatus.OK

    def is_reachable(self) -> bool:
        """Returns `True` if an HTTP HEAD request to the pod base URL
        yields a non-error response, and `False` otherwise."""
        try:
            return self.head(self.pod.url).ok
        except TransportError as e:
            logger.error(str(e))
            return False

    def test_connection(self):
        """Test the connection to the pod using `is_reachable()`. If
        it returns false, raises a `ConnectionError`."""
        logger.info(f'Testing connection to {self.pod.url}')
        if self.is_reachable():
            logger.info('Connection successful.')
        else:
            raise requests.exceptions.ConnectionError(f'Unable to connect to {self.pod.url}')


def log_failure(message: str, response: Response):
    """Log a non-success response, including each line of its body."""
    logger.error(f'{message}. Response code: {response.status_code}')
    for line in response.text.splitlines():
        logger.error(line)


class PodResourceClient(Client):
    """Manages containers and newline-delimited text resources in a pod.

    The plain operations (`create_container()`, `publish_data()`,
    `read_data()`, `update_data()`) never raise on remote failures; they log
    them, and `read_data()` returns an empty list. Each has a `*_result()`
    counterpart that returns an `OperationResult` describing what happened.

    `update_data()` is a read followed by a write, with no isolation between
    the two: a concurrent writer to the same resource may have its entries
    lost. Pass `conditional=True` to make the write depend on the resource's
    `ETag` instead.
    """

    def __init__(self, pod: Pod | str, get_auth_token: Callable[[], str] = None, auth: AuthBase = None, **kwargs):
        if auth is None and get_auth_token is not None:
            auth = TokenProviderAuth(get_auth_token)
        super().__init__(pod, auth=auth, **kwargs)
        logger.info(f'Pod client initialized for: {self.pod.url}')

    def create_container_result(self, container_name: str) -> OperationResult:
        """Create an LDP container named `container_name` directly under the
        pod base URL, unless one already exists there. The result value is
        the container URL (taken from the `Location` header if the pod
        created it)."""
        container_url = self.pod.container_url(container_name)
        try:
            if self.exists(container_url):
                logger.info(f'Container already exists: {container_url}')
                return OperationResult.success(container_url, HTTPStatus.OK)

            response = self.post(
                self.pod.base_url,
                headers={
                    'Content-Type': 'text/turtle',
                    'Link': type_link(ldp.Container),
                    'Slug': container_name,
                },
                data=b'',
            )
        except TransportError as e:
            logger.error(f'Error creating container {container_url}: {e}')
            return OperationResult.failure(e.kind, detail=str(e))

        if is_success(response.status_code):
            location = response.headers.get('Location', container_url)
            logger.info(f'Container created successfully: {location}')
            return OperationResult.success(location, response.status_code)
        else:
            log_failure(f'Failed to create container {container_url}', response)
            return OperationResult.failure(ErrorKind.STATUS, response.status_code, response.text)

    def create_container(self, container_name: str):
        self.create_container_result(container_name)

    def read_data_result(self, container_name: str, file_name: str) -> OperationResult:
        """Read the entries stored in a resource. On success the result value
        is the list of entries and `etag` holds the resource's `ETag`, if the
        pod sent one. On failure the value is an empty list."""
        resource_url = self.pod.resource_url(container_name, file_name)
        try:
            response = self.get(resource_url, headers={'Accept': 'text/plain'})
        except TransportError as e:
            logger.error(f'Error reading data from {resource_url}: {e}')
            return OperationResult.failure(e.kind, detail=str(e), value=[])

        if response.status_code != HTTPStatus.OK:
            if response.status_code == HTTPStatus.NOT_FOUND:
                logger.warning(f'No resource found at {resource_url}')
            else:
                log_failure(f'Failed to read data from {resource_url}', response)
            return OperationResult.failure(ErrorKind.STATUS, response.status_code, response.text, value=[])

        try:
            text = response.content.decode('utf-8')
        except UnicodeDecodeError as e:
            logger.error(f'Response from {resource_url} is not UTF-8 text: {e}')
            return OperationResult.failure(ErrorKind.BODY, response.status_code, str(e), value=[])

        entries = decode(text.replace('\r\n', '\n').replace('\r', '\n'))
        logger.info(f'Data read successfully from: {resource_url}')
        return OperationResult.success(entries, response.status_code, etag=response.headers.get('ETag'))

    def read_data(self, container_name: str, file_name: str) -> list[str]:
        return self.read_data_result(container_name, file_name).value

    def publish_data_result(self, container_name: str, file_name: str, entries: Iterable[Any]) -> OperationResult:
        """Replace the contents of a resource with `entries`. The result value
        is the resource URL."""
        return self._write(self.pod.resource_url(container_name, file_name), entries)

    def publish_data(self, container_name: str, file_name: str, entries: Iterable[Any]):
        self.publish_data_result(container_name, file_name, entries)

    def update_data_result(
            self,
            container_name: str,
            file_name: str,
            new_entries: Iterable[Any],
            conditional: bool = False,
    ) -> OperationResult:
        """Append `new_entries` to the entries already stored in a resource.

        By default, if the read fails the resource is written with only
        `new_entries`, and a write by someone else between the read and the
        write is silently overwritten.

        With `conditional=True` the write is sent with `If-Match` set to the
        `ETag` from the read (or `If-None-Match: *` if there was nothing to
        read), so the pod rejects it if the resource has changed in between;
        that is reported as `ErrorKind.CONFLICT`. A failed read is returned
        as-is and nothing is written."""
        resource_url = self.pod.resource_url(container_name, file_name)
        new_entries = list(new_entries)
        current = self.read_data_result(container_name, file_name)

        precondition = None
        if conditional:
            if current.ok and current.etag:
                precondition = {'If-Match': current.etag}
            elif current.ok:
                logger.error(f'Cannot update {resource_url} conditionally: no ETag in response')
                return OperationResult.failure(ErrorKind.CONFLICT, current.status_code, 'No ETag in response')
            elif current.status_code == HTTPStatus.NOT_FOUND:
                precondition = {'If-None-Match': '*'}
            else:
                logger.error(f'Not updating {resource_url}; unable to read its current entries')
                return current

        logger.debug(f'Appending {len(new_entries)} entries to {len(current.value)} at {resource_url}')
        return self._write(resource_url, current.value + new_entries, precondition)

    def update_data(self, container_name: str, file_name: str, new_entries: Iterable[Any], conditional: bool = False):
        self.update_data_result(container_name, file_name, new_entries, conditional=conditional)

    def _write(self, resource_url: str, entries: Iterable[Any], precondition: Mapping[str, str] = None):
        headers = {'Content-Type': 'text/plain'}
        if precondition:
            headers.update(precondition)
        try:
            response = self.put(resource_url, headers=headers, data=encode(entries).encode('utf-8'))
        except TransportError as e:
            logger.error(f'Error publishing data to {resource_url}: {e}')
            return OperationResult.failure(e.kind, detail=str(e))

        if is_success(response.status_code):
            logger.info(f'Data published successfully to: {resource_url}')
            return OperationResult.success(resource_url, response.status_code)
        elif precondition and response.status_code == HTTPStatus.PRECONDITION_FAILED:
            logger.error(f'{resource_url} was changed by another writer; not overwriting it')
            return OperationResult.failure(ErrorKind.CONFLICT, response.status_code, response.text)
        else:
            log_failure(f'Failed to publish data to {resource_url}', response)
            return OperationResult.failure(ErrorKind.STATUS, response.status_code, response.text)
