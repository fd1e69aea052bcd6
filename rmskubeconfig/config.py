from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

import httpx

from rmskubeconfig.clients.rms_client import RmsClient
from rmskubeconfig.exceptions import ConfigError
from rmskubeconfig.services.kubeconfig import KubeconfigBuilder, write_kubeconfig
from rmskubeconfig.utils.logging import get_logger, log_step

RMS_URL_PATTERN = re.compile(r"^(https?://)?([\w\-]+(\.[\w\-]+)+)(:[0-9]{1,5})?(/\S*)?$")
# Anchored at the start only; trailing text after a valid token is accepted.
API_TOKEN_PATTERN = re.compile(r"^token-\w+:\w+")

DEFAULT_REQUEST_TIMEOUT_S = 10.0


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"Invalid float for {name}: {raw}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive (got: {raw})")
    return value


@dataclass(frozen=True, slots=True)
class Settings:
    rms_url: str | None
    api_token: str | None
    cluster_id: str | None
    output_path: str | None
    request_timeout_s: float
    log_level: str


def load_settings_from_env() -> Settings:
    return Settings(
        rms_url=_optional_env("RMS_URL"),
        api_token=_optional_env("RMS_TOKEN"),
        cluster_id=_optional_env("RMS_CLUSTER_ID"),
        output_path=_optional_env("RMS_OUTPUT_PATH"),
        request_timeout_s=_optional_float("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_S),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )


class Config:
    """
    Inputs for one combined-kubeconfig run.

    Every setter validates before storing, so a failed call leaves the previous value in place.
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._rms_url = ""
        self._api_token = ""
        self._output_path = ""
        self._cluster_id = ""
        self._timeout_s = timeout_s
        self._transport = transport
        self._logger = logger or get_logger()

    def set_rms_url(self, url: str) -> None:
        if not RMS_URL_PATTERN.fullmatch(url):
            raise ConfigError(f"invalid RMS URL format: {url}")
        self._rms_url = url

    def set_api_token(self, token: str) -> None:
        if not API_TOKEN_PATTERN.match(token):
            raise ConfigError(f"invalid API token format, must match regex: {API_TOKEN_PATTERN.pattern!r}")
        self._api_token = token

    def set_output_path(self, path: str) -> None:
        if not os.path.isdir(path):
            raise ConfigError(f"output path must be an existing directory: {path}")
        self._output_path = os.path.abspath(path)

    def set_cluster_id(self, cluster_id: str) -> None:
        if cluster_id == "":
            raise ConfigError("cluster ID must not be empty")
        self._cluster_id = cluster_id

    @property
    def rms_url(self) -> str:
        return self._rms_url

    @property
    def api_token(self) -> str:
        return self._api_token

    @property
    def output_path(self) -> str:
        return self._output_path

    @property
    def cluster_id(self) -> str:
        return self._cluster_id

    def run(self) -> Path:
        """
        Fetch every cluster's kubeconfig, merge them and write ``{output_path}/config``.

        With a cluster ID set, only that cluster is fetched and the cluster list is never requested.
        Any error is raised unchanged and nothing is written.
        """

        self._output_path = os.path.abspath(self._output_path or os.getcwd())

        with RmsClient(
            base_url=self._rms_url,
            token=self._api_token,
            timeout_s=self._timeout_s,
            transport=self._transport,
        ) as rms:
            if self._cluster_id:
                cluster_ids = [self._cluster_id]
            else:
                cluster_ids = self._list_cluster_ids(rms)

            document = KubeconfigBuilder(rms=rms, logger=self._logger).build(cluster_ids)

        with log_step(self._logger, action="kubeconfig_write", fields={"output_path": self._output_path}) as fields:
            target = write_kubeconfig(document, self._output_path)
            fields.update(
                cluster_ids=cluster_ids,
                clusters=len(document.clusters),
                users=len(document.users),
                contexts=len(document.contexts),
            )
        return target

    def _list_cluster_ids(self, rms: RmsClient) -> list[str]:
        with log_step(self._logger, action="rms_list_clusters", fields={"rms_url": self._rms_url}) as fields:
            clusters = rms.list_clusters()
            fields["cluster_count"] = len(clusters)
        return [c.id for c in clusters]
