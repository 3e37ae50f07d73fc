from http.client import RemoteDisconnected
from unittest.mock import MagicMock

import httpretty
import pytest
from requests import Response, Session
from requests.exceptions import ConnectionError, ConnectTimeout
from requests_jwtauth import HTTPBearerAuth

from solidpod.client import (
    Client, Pod, PodResourceClient, OperationResult, ErrorKind, TransportError, DEFAULT_TIMEOUT, status_phrase,
)
from solidpod.client.auth import TokenProviderAuth


class MockOKResponse:
    ok = True
    status_code = 200
    reason = 'OK'


class MockNotFoundResponse:
    ok = False
    status_code = 404
    reason = 'Not Found'


def test_client_accepts_url_string():
    client = Client('http://localhost:9999/alice/')
    assert isinstance(client.pod, Pod)
    assert client.pod.url == 'http://localhost:9999/alice'


def test_default_client_session(client):
    assert isinstance(client.session, Session)


def test_custom_client_session(pod):
    session = Session()
    client = Client(pod=pod, session=session)
    assert client.session is session


def test_client_ua_string(pod):
    client = Client(pod=pod, ua_string='test/1.2.3')
    assert client.session.headers['User-Agent'] == 'test/1.2.3'


def test_client_server_cert(pod):
    client = Client(pod=pod, server_cert='/etc/ssl/pod-ca.pem')
    assert client.session.verify == '/etc/ssl/pod-ca.pem'


def test_token_provider_becomes_auth(pod):
    client = PodResourceClient(pod=pod, get_auth_token=lambda: 'abcd-1234')
    assert isinstance(client.session.auth, TokenProviderAuth)


def test_explicit_auth_wins_over_token_provider(pod):
    client = PodResourceClient(pod=pod, get_auth_token=lambda: 'abcd-1234', auth=HTTPBearerAuth('wxyz-0000'))
    assert isinstance(client.session.auth, HTTPBearerAuth)
    assert client.session.auth.token == 'wxyz-0000'


def test_no_auth(pod):
    client = PodResourceClient(pod=pod)
    assert client.session.auth is None


def test_default_timeout_is_passed(client, monkeypatch):
    mock_session = MagicMock(spec=Session)
    monkeypatch.setattr(client, 'session', mock_session)
    client.get(client.pod.url)
    assert mock_session.request.call_args.kwargs['timeout'] == DEFAULT_TIMEOUT


def test_custom_timeout_is_passed(pod, monkeypatch):
    client = PodResourceClient(pod=pod, timeout=2.5)
    mock_session = MagicMock(spec=Session)
    monkeypatch.setattr(client, 'session', mock_session)
    client.read_data('data', 'log.txt')
    assert mock_session.request.call_args.kwargs['timeout'] == 2.5


def test_client_connection_error(client, monkeypatch):
    error = RemoteDisconnected('Remote end closed connection without response')
    mock_session = MagicMock(spec=Session)
    mock_session.request.side_effect = ConnectionError('Connection aborted.', error)
    monkeypatch.setattr(client, 'session', mock_session)
    with pytest.raises(TransportError) as e:
        client.get(client.pod.url)
    assert e.value.kind == ErrorKind.TRANSPORT
    assert str(e.value) == 'Connection error: Connection aborted. Remote end closed connection without response'


def test_client_timeout(client, monkeypatch):
    mock_session = MagicMock(spec=Session)
    mock_session.request.side_effect = ConnectTimeout('Connection timed out')
    monkeypatch.setattr(client, 'session', mock_session)
    with pytest.raises(TransportError) as e:
        client.head(client.pod.url)
    assert e.value.kind == ErrorKind.TIMEOUT


def test_exists(monkeypatch_request, client):
    monkeypatch_request(MockOKResponse)
    assert client.exists('http://localhost:9999/alice/data/')


def test_not_exists(monkeypatch_request, client):
    monkeypatch_request(MockNotFoundResponse)
    assert not client.exists('http://localhost:9999/alice/data/')


def test_test_connection(monkeypatch_request, client):
    monkeypatch_request(MockOKResponse)
    assert client.is_reachable()
    client.test_connection()


def test_test_connection_not_found(monkeypatch_request, client):
    monkeypatch_request(MockNotFoundResponse)
    assert not client.is_reachable()
    with pytest.raises(ConnectionError):
        client.test_connection()


def test_test_connection_unreachable(client, monkeypatch):
    mock_session = MagicMock(spec=Session)
    mock_session.request.side_effect = ConnectionError('Connection refused')
    monkeypatch.setattr(client, 'session', mock_session)
    assert not client.is_reachable()


@httpretty.activate
def test_token_provider_called_per_request(pod, simulate_pod):
    tokens = iter(['token-1', 'token-2'])
    client = PodResourceClient(pod=pod, get_auth_token=lambda: next(tokens))
    server = simulate_pod()
    client.create_container('data')

    assert [r.headers['Authorization'] for r in server.requests] == ['Bearer token-1', 'Bearer token-2']


def test_operation_result_success():
    result = OperationResult.success(['one'], 200, etag='"v1"')
    assert result
    assert result.ok
    assert result.value == ['one']
    assert result.error is None
    assert result.etag == '"v1"'


def test_operation_result_failure():
    result = OperationResult.failure(ErrorKind.STATUS, 404, 'Not Found', value=[])
    assert not result
    assert result.value == []
    assert result.status_code == 404
    assert result.detail == 'Not Found'


@pytest.mark.parametrize(
    ('status_code', 'phrase'),
    [
        (200, 'OK'),
        (404, 'Not Found'),
        (499, ''),
        (520, ''),
        (599, ''),
    ]
)
def test_status_phrase(status_code, phrase):
    assert status_phrase(status_code) == phrase


@pytest.mark.parametrize('reason', ['', None])
def test_request_unregistered_status_without_reason(monkeypatch_request, reason):
    monkeypatch_request(MagicMock(spec=Response, status_code=599, reason=reason, text='', headers={}))
    client = Client('http://localhost:9999/alice')
    assert client.get('http://localhost:9999/alice/data/log.txt').status_code == 599
