"""CLI entrypoint for the statistical dataset pipeline."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from statpipe.common.config_loader import load_all_configs
from statpipe.common.constants import COMMANDS, DEFAULT_LOCALE, EXIT_HARD_FAIL, EXIT_SUCCESS, SUPPORTED_LOCALES
from statpipe.common.errors import PipelineError
from statpipe.common.logging import build_logger, log_event
from statpipe.common.time_utils import generate_run_id
from statpipe.pipeline.export import DEFAULT_PREBUILT_ROOT, write_normalized_json
from statpipe.pipeline.service import DEFAULT_LOCAL_ROOT, DatasetService


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument(
        "dataset_id",
        nargs="?",
        default=None,
        help="required except for prebuild, which defaults to every local dataset",
    )
    parser.add_argument("--locale", default=DEFAULT_LOCALE, choices=SUPPORTED_LOCALES)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--local-root", default=str(DEFAULT_LOCAL_ROOT))
    parser.add_argument(
        "--prebuilt-root",
        default=None,
        help=f"pre-built JSON directory to serve local datasets from; prebuild writes here (default {DEFAULT_PREBUILT_ROOT})",
    )
    parser.add_argument("--out", default=None, help="write JSON output to this path instead of stdout")
    parser.add_argument("--page", type=int, default=0)
    parser.add_argument("--page-size", type=int, default=0)
    parser.add_argument("--log-dir", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--run-id", default=None)
    args = parser.parse_args(argv)
    if args.dataset_id is None and args.command != "prebuild":
        parser.error(f"{args.command} requires a dataset id")
    return args


def execute_command(args: argparse.Namespace, service: DatasetService) -> dict:
    if args.command == "prebuild":
        root = Path(args.prebuilt_root) if args.prebuilt_root else DEFAULT_PREBUILT_ROOT
        dataset_ids = [args.dataset_id] if args.dataset_id else None
        return service.prebuild_local_datasets(root, dataset_ids)
    if args.command == "fetch":
        dataset, info = service.load_dataset(
            args.dataset_id,
            args.locale,
            page=args.page,
            page_size=args.page_size,
        )
        payload = dataset.to_dict()
        payload.update(info)
        if args.out:
            write_normalized_json(Path(args.out), dataset, extra=info)
        return payload
    if args.command == "analyze":
        dataset, info = service.load_dataset(args.dataset_id, args.locale)
        return {
            "dataset": args.dataset_id,
            "locale": args.locale,
            "cached": info["cached"],
            "rowCount": dataset.metadata.row_count,
            "columnCount": dataset.metadata.column_count,
            "dimensions": [dim.to_dict() for dim in dataset.metadata.dimensions],
        }
    if args.command == "chart":
        return service.chart_decision(args.dataset_id, args.locale)
    raise ValueError(f"Unknown command: {args.command}")


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    log_dir = Path(args.log_dir) if args.log_dir else None
    logger = build_logger(run_id, level=args.log_level, log_dir=log_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    log_event(
        logger,
        "command start",
        run_id=run_id,
        stage=args.command,
        dataset=args.dataset_id,
        event="COMMAND_START",
        status="ok",
    )
    try:
        bundle = load_all_configs(Path(args.config_dir), overlay_config_dir=overlay_config_dir)
        prebuilt_root = Path(args.prebuilt_root) if args.prebuilt_root and args.command != "prebuild" else None
        with DatasetService(bundle, local_root=Path(args.local_root), prebuilt_root=prebuilt_root) as service:
            payload = execute_command(args, service)
    except PipelineError as exc:
        log_event(
            logger,
            f"command failed for dataset {args.dataset_id}: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=args.command,
            dataset=args.dataset_id,
            event="COMMAND_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception(
            "unexpected failure for dataset %s",
            args.dataset_id,
            extra={
                "run_id": run_id,
                "stage": args.command,
                "dataset": args.dataset_id,
                "event": "COMMAND_FAIL",
                "status": "error",
                "error_code": "UNEXPECTED_ERROR",
            },
        )
        return EXIT_HARD_FAIL

    if not (args.command == "fetch" and args.out):
        sys.stdout.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
    log_event(
        logger,
        "command end",
        run_id=run_id,
        stage=args.command,
        dataset=args.dataset_id,
        event="COMMAND_END",
        status="ok",
    )
    if args.command == "prebuild" and payload["failed"]:
        return EXIT_HARD_FAIL
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
