from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import yaml
from pydantic import ValidationError

from rmskubeconfig.exceptions import FilesystemError, ParseError
from rmskubeconfig.models import Kubeconfig
from rmskubeconfig.utils.logging import log_step

CONFIG_FILENAME = "config"
CONFIG_FILE_MODE = 0o600

# Plain scalars resolved to these tags by YAML 1.1 stay text instead.
_TEXT_TAGS = frozenset(
    {
        "tag:yaml.org,2002:bool",
        "tag:yaml.org,2002:int",
        "tag:yaml.org,2002:float",
        "tag:yaml.org,2002:timestamp",
    }
)


class KubeconfigLoader(yaml.SafeLoader):
    """SafeLoader that reads every plain scalar except null as a string."""


KubeconfigLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in _TEXT_TAGS]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class KubeconfigSource(Protocol):
    def generate_kubeconfig(self, *, cluster_id: str) -> str: ...


def _load_yaml(text: str, *, cluster_id: str) -> dict[str, Any]:
    try:
        raw = yaml.load(text, Loader=KubeconfigLoader)
    except yaml.YAMLError as e:
        raise ParseError(
            f"error unmarshaling kubeconfig YAML for cluster {cluster_id}: {e}",
            cluster_id=cluster_id,
        ) from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ParseError(
            f"kubeconfig for cluster {cluster_id} must be a mapping at top level",
            cluster_id=cluster_id,
        )
    return raw


def parse_fragment(text: str, *, cluster_id: str) -> Kubeconfig:
    """
    Parse one generated kubeconfig into its clusters, users and contexts.

    Keys other than those three lists (current-context, preferences, ...) are dropped.
    """

    raw = _load_yaml(text, cluster_id=cluster_id)
    try:
        return Kubeconfig.model_validate({k: raw.get(k) for k in ("clusters", "users", "contexts")})
    except ValidationError as e:
        raise ParseError(
            f"kubeconfig for cluster {cluster_id} has unexpected structure: {e}",
            cluster_id=cluster_id,
        ) from e


class KubeconfigBuilder:
    def __init__(self, *, rms: KubeconfigSource, logger: logging.Logger) -> None:
        self._rms = rms
        self._logger = logger

    def build(self, cluster_ids: Sequence[str]) -> Kubeconfig:
        # Sequential and fail-fast: the first error aborts the whole merge.
        combined = Kubeconfig()
        for cluster_id in cluster_ids:
            with log_step(self._logger, action="rms_generate_kubeconfig", cluster_id=cluster_id) as fields:
                text = self._rms.generate_kubeconfig(cluster_id=cluster_id)
                fields["bytes"] = len(text)

            with log_step(self._logger, action="kubeconfig_merge", cluster_id=cluster_id) as fields:
                fragment = parse_fragment(text, cluster_id=cluster_id)
                combined.extend(fragment)
                fields.update(
                    clusters=[c.name for c in fragment.clusters],
                    contexts=[c.name for c in fragment.contexts],
                    users=len(fragment.users),
                )
        return combined


def write_kubeconfig(document: Kubeconfig, output_path: str | Path) -> Path:
    """
    Write the combined kubeconfig to ``{output_path}/config``, replacing any existing file.

    The file is created owner read/write only. The directory is not created.
    """

    target = Path(output_path) / CONFIG_FILENAME
    content = document.to_yaml()
    try:
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, CONFIG_FILE_MODE)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            # O_CREAT mode does not apply to a file that already exists.
            os.fchmod(f.fileno(), CONFIG_FILE_MODE)
            f.write(content)
    except OSError as e:
        raise FilesystemError(f"error writing kubeconfig: {e.strerror or e}", path=str(target)) from e
    return target
