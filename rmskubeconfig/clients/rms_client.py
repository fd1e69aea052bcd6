from __future__ import annotations

from typing import TypeVar

import httpx
from pydantic import BaseModel

from rmskubeconfig.exceptions import RequestError
from rmskubeconfig.models import KubeconfigResponse, RmsCluster, RmsClustersResponse

T = TypeVar("T", bound=BaseModel)

CLUSTER_LIST_PATH = "/v3/clusters/"
GENERATE_KUBECONFIG_ACTION = "generateKubeconfig"


class RmsClient:
    def __init__(
        self,
        *,
        base_url: str,
        token: str,
        timeout_s: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_s),
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    def __enter__(self) -> "RmsClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def list_clusters(self) -> list[RmsCluster]:
        resp = self._send("GET", f"{self._base_url}{CLUSTER_LIST_PATH}", what="cluster list")
        parsed = self._handle_json(resp, model=RmsClustersResponse, what="cluster list")
        return parsed.data

    def generate_kubeconfig(self, *, cluster_id: str) -> str:
        resp = self._send(
            "POST",
            f"{self._base_url}{CLUSTER_LIST_PATH}{cluster_id}",
            params={"action": GENERATE_KUBECONFIG_ACTION},
            what=f"generate kubeconfig for cluster {cluster_id}",
        )
        parsed = self._handle_json(resp, model=KubeconfigResponse, what=f"kubeconfig for cluster {cluster_id}")
        return parsed.config

    def _send(
        self,
        method: str,
        url: str,
        *,
        what: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            request = self._client.build_request(method, url, params=params)
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise RequestError(message=f"error creating {what} request: {e}") from e

        try:
            return self._client.send(request)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise RequestError(message=f"error making {what} request: {e}") from e

    @staticmethod
    def _handle_json(resp: httpx.Response, *, model: type[T], what: str) -> T:
        status = resp.status_code
        if status != httpx.codes.OK:
            raise RequestError(message=f"unexpected response status for {what}: {status} {resp.reason_phrase}")
        try:
            data = resp.json()
            return model.model_validate(data)
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError are both ValueErrors.
            raise RequestError(message=f"error decoding {what} response: {e}") from e
