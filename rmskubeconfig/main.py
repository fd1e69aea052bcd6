from __future__ import annotations

import argparse
import logging
import sys

from rmskubeconfig.config import Config, load_settings_from_env
from rmskubeconfig.exceptions import ConfigError, ExitCode, RmsKubeconfigError, exit_code_for_error
from rmskubeconfig.utils.logging import Timer, configure_logging, log_event


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rmskubeconfig", add_help=True)
    p.add_argument("--url", help="RMS API base URL (default: $RMS_URL)")
    p.add_argument("--token", help="RMS API token, token-<id>:<secret> (default: $RMS_TOKEN)")
    p.add_argument(
        "--output",
        help="Existing directory to write the combined 'config' file to (default: $RMS_OUTPUT_PATH or cwd)",
    )
    p.add_argument(
        "--cluster-id",
        help="Only fetch this cluster; for tokens scoped to a single cluster (default: $RMS_CLUSTER_ID)",
    )
    return p


def _build_config(args: argparse.Namespace) -> tuple[Config, logging.Logger]:
    settings = load_settings_from_env()
    logger = configure_logging(level=settings.log_level)

    url = args.url or settings.rms_url
    token = args.token or settings.api_token
    if not url:
        raise ConfigError("RMS URL is required (--url or RMS_URL)")
    if not token:
        raise ConfigError("RMS API token is required (--token or RMS_TOKEN)")

    cfg = Config(timeout_s=settings.request_timeout_s, logger=logger)
    cfg.set_rms_url(url)
    cfg.set_api_token(token)
    output = args.output or settings.output_path
    if output:
        cfg.set_output_path(output)
    cluster_id = args.cluster_id or settings.cluster_id
    if cluster_id:
        cfg.set_cluster_id(cluster_id)
    return cfg, logger


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    timer = Timer.start_now()

    try:
        cfg, logger = _build_config(args)
    except ConfigError as e:
        logger = configure_logging(level="INFO")
        log_event(
            logger,
            action="config",
            result="failed",
            duration_ms=timer.elapsed_ms(),
            level=logging.ERROR,
            message=str(e),
        )
        return int(ExitCode.INVALID_INPUT)

    log_event(
        logger,
        action="config",
        result="ok",
        duration_ms=timer.elapsed_ms(),
        fields={
            "rms_url": cfg.rms_url,
            "output_path": cfg.output_path or None,
            "single_cluster_id": cfg.cluster_id or None,
        },
    )

    target = None
    try:
        target = cfg.run()
    except RmsKubeconfigError as e:
        exit_code = exit_code_for_error(e)
    except Exception as e:  # pragma: no cover
        log_event(
            logger,
            action="run",
            result="failed",
            duration_ms=timer.elapsed_ms(),
            level=logging.ERROR,
            message=repr(e),
        )
        exit_code = exit_code_for_error(e)
    else:
        exit_code = 0

    log_event(
        logger,
        action="summary",
        result="ok" if exit_code == 0 else "failed",
        duration_ms=timer.elapsed_ms(),
        level=logging.INFO if exit_code == 0 else logging.ERROR,
        fields={
            "exit_code": exit_code,
            "kubeconfig_path": str(target) if target is not None else None,
        },
    )
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
