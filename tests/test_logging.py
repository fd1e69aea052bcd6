from __future__ import annotations

import json
import logging

import pytest

from rmskubeconfig.exceptions import RequestError
from rmskubeconfig.utils.logging import JsonFormatter, log_event, log_step


class _Records(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.lines: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.lines.append(json.loads(JsonFormatter().format(record)))


@pytest.fixture
def logger_and_lines():
    logger = logging.getLogger("rmskubeconfig.tests.logging")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    handler = _Records()
    logger.addHandler(handler)
    yield logger, handler.lines
    logger.removeHandler(handler)


def test_run_level_event_has_no_cluster_id(logger_and_lines) -> None:
    logger, lines = logger_and_lines

    log_event(logger, action="kubeconfig_write", result="ok", fields={"output_path": "/tmp/kube"})

    assert "cluster_id" not in lines[0]
    assert "message" not in lines[0]
    assert lines[0]["output_path"] == "/tmp/kube"


def test_fields_do_not_override_fixed_keys(logger_and_lines) -> None:
    logger, lines = logger_and_lines

    log_event(logger, action="rms_list_clusters", result="ok", cluster_id="c-1", fields={"action": "x", "result": "y"})

    assert lines[0]["action"] == "rms_list_clusters"
    assert lines[0]["result"] == "ok"
    assert lines[0]["cluster_id"] == "c-1"


def test_log_step_ok_carries_block_fields(logger_and_lines) -> None:
    logger, lines = logger_and_lines

    with log_step(logger, action="kubeconfig_merge", cluster_id="c-1") as fields:
        fields["clusters"] = ["cluster1"]

    assert lines == [
        {
            "ts": lines[0]["ts"],
            "level": "INFO",
            "action": "kubeconfig_merge",
            "result": "ok",
            "duration_ms": lines[0]["duration_ms"],
            "cluster_id": "c-1",
            "clusters": ["cluster1"],
        }
    ]


def test_log_step_failure_reraises_same_error(logger_and_lines) -> None:
    logger, lines = logger_and_lines
    err = RequestError("unexpected response status for cluster list: 401 Unauthorized")

    with pytest.raises(RequestError) as excinfo:
        with log_step(logger, action="rms_list_clusters", fields={"rms_url": "https://rms.test"}):
            raise err

    assert excinfo.value is err
    assert lines[0]["level"] == "ERROR"
    assert lines[0]["result"] == "failed"
    assert lines[0]["error"] == "RequestError"
    assert lines[0]["rms_url"] == "https://rms.test"
    assert "401" in lines[0]["message"]
