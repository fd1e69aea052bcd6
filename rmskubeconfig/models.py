from __future__ import annotations

from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class RmsCluster(BaseModel):
    id: str
    name: str


class RmsClustersResponse(BaseModel):
    data: list[RmsCluster] = Field(default_factory=list)


class KubeconfigResponse(BaseModel):
    config: str


class KubeconfigEntry(BaseModel):
    """Kubeconfig sections read the way kubectl does: null or missing means the zero value."""

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _null_as_default(cls, data: Any) -> Any:
        if data is None:
            return {}
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class KubeconfigClusterDetails(KubeconfigEntry):
    server: str = ""
    certificate_authority_data: str = Field(default="", alias="certificate-authority-data")


class KubeconfigCluster(KubeconfigEntry):
    name: str = ""
    cluster: KubeconfigClusterDetails = Field(default_factory=KubeconfigClusterDetails)


class KubeconfigUserDetails(KubeconfigEntry):
    token: str = ""


class KubeconfigUser(KubeconfigEntry):
    name: str = ""
    user: KubeconfigUserDetails = Field(default_factory=KubeconfigUserDetails)


class KubeconfigContextDetails(KubeconfigEntry):
    user: str = ""
    cluster: str = ""


class KubeconfigContext(KubeconfigEntry):
    name: str = ""
    context: KubeconfigContextDetails = Field(default_factory=KubeconfigContextDetails)


class Kubeconfig(KubeconfigEntry):
    api_version: str = Field(default="v1", alias="apiVersion")
    kind: str = "Config"
    clusters: list[KubeconfigCluster] = Field(default_factory=list)
    users: list[KubeconfigUser] = Field(default_factory=list)
    contexts: list[KubeconfigContext] = Field(default_factory=list)

    def extend(self, other: Kubeconfig) -> None:
        self.clusters.extend(other.clusters)
        self.users.extend(other.users)
        self.contexts.extend(other.contexts)

    def to_yaml(self) -> str:
        return yaml.safe_dump(
            self.model_dump(by_alias=True),
            default_flow_style=False,
            sort_keys=False,
            allow_unicode=True,
        )
