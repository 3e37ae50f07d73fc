from argparse import Namespace
from dataclasses import dataclass
from importlib.metadata import version, PackageNotFoundError
from typing import Any

from solidpod.client import Pod, PodResourceClient, DEFAULT_TIMEOUT
from solidpod.client.auth import get_authenticator


@dataclass
class PodContext:
    config: dict[str, Any] = None
    args: Namespace = None
    _pod: Pod = None
    _client: PodResourceClient = None

    @property
    def version(self):
        try:
            return version('solidpod')
        except PackageNotFoundError:
            return 'unknown'

    @property
    def pod_config(self) -> dict[str, Any]:
        return (self.config or {}).get('POD', {})

    @property
    def pod(self) -> Pod:
        if self._pod is None:
            try:
                self._pod = Pod(url=self.pod_config['URL'])
            except KeyError as e:
                raise RuntimeError(f"Missing configuration key {e} in section 'POD'")

        return self._pod

    @property
    def client(self) -> PodResourceClient:
        if self._client is None:
            try:
                timeout = float(self.pod_config.get('TIMEOUT', DEFAULT_TIMEOUT))
            except (TypeError, ValueError):
                raise RuntimeError(f"Invalid TIMEOUT value {self.pod_config['TIMEOUT']!r} in section 'POD'")
            self._client = PodResourceClient(
                pod=self.pod,
                auth=get_authenticator(self.pod_config),
                server_cert=self.pod_config.get('SERVER_CERT'),
                ua_string=f'solidpod/{self.version}',
                timeout=timeout,
            )

        return self._client
