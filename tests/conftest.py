"""Common test fixtures"""

import re
from argparse import Namespace
from typing import Callable, Iterable, Mapping, Optional

import httpretty
import pytest
import requests

from solidpod.client import Pod, PodResourceClient
from solidpod.context import PodContext


class InMemoryPod:
    """Minimal LDP server for HTTPretty: keeps containers and text resources
    in memory, and records every request it receives."""

    def __init__(self, base_path: str):
        # POSTs are only accepted at the base path exactly as given
        self.post_path = base_path
        self.base_path = base_path.rstrip('/')
        self.containers: set[str] = set()
        self.resources: dict[str, bytes] = {}
        self.versions: dict[str, int] = {}
        self.requests = []

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.path) for r in self.requests]

    def methods(self) -> list[str]:
        return [r.method for r in self.requests]

    def etag(self, path: str) -> str:
        return f'"v{self.versions[path]}"'

    def store(self, path: str, body: bytes):
        self.resources[path] = body
        self.versions[path] = self.versions.get(path, 0) + 1

    def __call__(self, request, uri, response_headers):
        self.requests.append(request)
        return getattr(self, request.method.lower())(request, response_headers)

    def head(self, request, headers):
        if request.path in self.containers or request.path in self.resources:
            return [200, headers, '']
        return [404, headers, '']

    def get(self, request, headers):
        if request.path in self.resources:
            headers['ETag'] = self.etag(request.path)
            return [200, headers, self.resources[request.path]]
        return [404, headers, 'Not Found']

    def post(self, request, headers):
        if request.path != self.post_path:
            return [405, headers, 'Method Not Allowed']
        path = f'{self.base_path}/{request.headers.get("Slug")}/'
        self.containers.add(path)
        headers['Location'] = f'http://localhost:9999{path}'
        return [201, headers, '']

    def put(self, request, headers):
        path = request.path
        if_match = request.headers.get('If-Match')
        if_none_match = request.headers.get('If-None-Match')
        if if_match is not None and (path not in self.resources or if_match != self.etag(path)):
            return [412, headers, 'Precondition Failed']
        if if_none_match == '*' and path in self.resources:
            return [412, headers, 'Precondition Failed']
        status = 204 if path in self.resources else 201
        self.store(path, request.body)
        return [status, headers, '']


@pytest.fixture
def pod_config():
    """Required parameters for pod configuration"""
    return {
        'URL': 'http://localhost:9999/alice',
        'AUTH_TOKEN': 'foobar',
        'LOG_DIR': '/logs',
    }


@pytest.fixture
def pod(pod_config) -> Pod:
    return Pod(url=pod_config['URL'])


@pytest.fixture
def client(pod) -> PodResourceClient:
    return PodResourceClient(pod=pod, get_auth_token=lambda: 'abcd-1234')


@pytest.fixture
def pod_context(pod_config) -> PodContext:
    return PodContext(config={'POD': pod_config}, args=Namespace())


@pytest.fixture
def simulate_pod(pod) -> Callable[..., InMemoryPod]:
    """Pytest fixture that uses HTTPretty to simulate a pod. Call it inside a
    test decorated with `@httpretty.activate`, optionally with the names of
    existing containers and a mapping of existing resource paths (relative to
    the pod) to their bodies. `base_path` overrides the path the pod accepts
    container creation requests at."""
    def _simulate_pod(
            containers: Iterable[str] = (),
            resources: Optional[Mapping[str, str | bytes]] = None,
            base_path: str = None,
    ) -> InMemoryPod:
        server = InMemoryPod(base_path or pod.base_url.path)
        for name in containers:
            server.containers.add(f'{server.base_path}/{name}/')
        for path, body in (resources or {}).items():
            server.store(f'{server.base_path}/{path}', body.encode() if isinstance(body, str) else body)
        pattern = re.compile(r'http://localhost:9999/alice')
        # HTTPretty only intercepts ports it knows of; regex URIs don't register theirs
        httpretty.core.POTENTIAL_HTTP_PORTS.add(9999)
        for method in (httpretty.HEAD, httpretty.GET, httpretty.POST, httpretty.PUT):
            httpretty.register_uri(method=method, uri=pattern, body=server)
        return server
    return _simulate_pod


@pytest.fixture
def monkeypatch_request(monkeypatch):
    def _monkeypatch_request(response):
        if isinstance(response, type):
            response = response()
        monkeypatch.setattr(requests.Session, 'request', lambda *args, **kwargs: response)
    return _monkeypatch_request
