"""rmskubeconfig package."""

from rmskubeconfig.config import Config
from rmskubeconfig.exceptions import ConfigError, FilesystemError, ParseError, RequestError, RmsKubeconfigError
from rmskubeconfig.models import Kubeconfig

__all__ = [
    "Config",
    "ConfigError",
    "FilesystemError",
    "Kubeconfig",
    "ParseError",
    "RequestError",
    "RmsKubeconfigError",
]
