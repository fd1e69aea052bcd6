from __future__ import annotations

from enum import IntEnum

ERR_REQUEST_CODE = 1000


class ExitCode(IntEnum):
    INVALID_INPUT = 1
    REQUEST = 2
    FILESYSTEM = 3
    UNEXPECTED = 4


class RmsKubeconfigError(Exception):
    """Base exception for controlled failures."""


class ConfigError(RmsKubeconfigError):
    """User input or environment is invalid."""


class RequestError(RmsKubeconfigError):
    """A call to the RMS API failed or returned something unusable."""

    def __init__(self, message: str, *, code: int = ERR_REQUEST_CODE) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"code: {self.code}, message: {self.message}"


class ParseError(RequestError):
    """A generated kubeconfig could not be read as a kubeconfig."""

    def __init__(self, message: str, *, cluster_id: str, code: int = ERR_REQUEST_CODE) -> None:
        super().__init__(message, code=code)
        self.cluster_id = cluster_id


class FilesystemError(RmsKubeconfigError):
    def __init__(self, message: str, *, path: str) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def exit_code_for_error(err: BaseException) -> int:
    """
    Map an error raised by Config.run() to a CLI exit code.
    """

    if isinstance(err, ConfigError):
        return int(ExitCode.INVALID_INPUT)
    if isinstance(err, RequestError):
        return int(ExitCode.REQUEST)
    if isinstance(err, FilesystemError):
        return int(ExitCode.FILESYSTEM)
    return int(ExitCode.UNEXPECTED)
