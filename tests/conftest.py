from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

_FRAGMENT_1 = """
clusters:
- name: cluster1
  cluster:
    server: https://cluster1.test
users:
- name: user1
  user:
    token: token1
contexts:
- name: context1
  context:
    cluster: cluster1
    user: user1
"""

_FRAGMENT_2 = """
clusters:
- name: cluster2
  cluster:
    server: https://cluster2.test
    certificate-authority-data: Y2EtZGF0YQ==
users:
- name: user2
  user:
    token: token2
contexts:
- name: context2
  context:
    cluster: cluster2
    user: user2
current-context: context2
"""


@pytest.fixture
def fragment_1() -> str:
    """One cluster, user and context named cluster1, user1, context1."""
    return _FRAGMENT_1


@pytest.fixture
def fragment_2() -> str:
    """Like fragment_1 with a CA and a current-context, all named ...2."""
    return _FRAGMENT_2


@pytest.fixture
def rms_api() -> Callable[..., tuple[httpx.MockTransport, list[httpx.Request]]]:
    """
    Build a MockTransport serving a fake RMS API.

    ``clusters`` is the list payload; ``kubeconfigs`` maps cluster id to the fragment text.
    Unknown cluster ids answer 404. Every request is recorded.
    """

    def _make(
        *,
        clusters: list[dict[str, str]] | None = None,
        kubeconfigs: dict[str, str] | None = None,
    ) -> tuple[httpx.MockTransport, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            path = request.url.path
            if request.method == "GET" and path == "/v3/clusters/":
                return httpx.Response(200, json={"data": clusters or []})
            if request.method == "POST" and request.url.params.get("action") == "generateKubeconfig":
                cluster_id = path.removeprefix("/v3/clusters/")
                if kubeconfigs is not None and cluster_id in kubeconfigs:
                    return httpx.Response(200, json={"config": kubeconfigs[cluster_id]})
                return httpx.Response(404, text="cluster not found")
            return httpx.Response(404, text="not found")

        return httpx.MockTransport(handler), seen

    return _make
