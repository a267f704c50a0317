from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from catalog_purge.config import (
    build_connection_settings,
    build_logger,
    build_sanitizer,
    build_vault,
    load_config,
    save_config,
)
from catalog_purge.directory import DirectoryConnectionError, build_directory_client
from catalog_purge.tables import read_input_table
from catalog_purge.vault import CryptographicError

from .actions import registry
from .results import JobReport
from .runner import JobAbortedError, ReconciliationEngine, check_connection


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="recon")
    parser.add_argument("--config", required=True, help="Path to the JSON configuration file")
    parser.add_argument("--input", help="Spreadsheet (.xlsx/.xlsm) or CSV file with card and item keys", default=None)
    parser.add_argument(
        "--job",
        choices=registry.names(),
        default="delete_catalog_entry",
        help="Row action to execute (default: delete_catalog_entry)",
    )
    parser.add_argument(
        "--output-json",
        help="Optional path to write the job report as JSON",
        default=None,
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Exit with code 2 if any row ended in delete_failed or error",
        default=False,
    )
    parser.add_argument(
        "--test-connection",
        action="store_true",
        help="Open and close a directory session, then exit",
        default=False,
    )
    parser.add_argument(
        "--protect-config",
        action="store_true",
        help="Rewrite the configuration with protected credentials, then exit",
        default=False,
    )
    args = parser.parse_args(argv)
    if not (args.input or args.test_connection or args.protect_config):
        parser.error("--input is required unless --test-connection or --protect-config is given")
    return args


def _print_progress(percent: int) -> None:
    print(f"progress {percent:3d}%", file=sys.stderr, flush=True)


def _write_report(report: JobReport, output_json: Optional[str]) -> None:
    payload: Dict[str, Any] = report.to_dict()
    if output_json:
        with open(output_json, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, sort_keys=True)
    else:
        print(json.dumps(payload, indent=2, sort_keys=True))


def run_cli(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    cfg = load_config(args.config)
    logger = build_logger(cfg)
    try:
        vault = build_vault(cfg, logger)
        if args.protect_config:
            save_config(args.config, cfg, vault)
            logger.info("config_protected", path=args.config)
            return
        try:
            settings = build_connection_settings(cfg, vault)
        except CryptographicError as exc:
            logger.error("credential_unprotect_failed", err=str(exc))
            print("Stored credentials could not be decrypted for this user or machine.", file=sys.stderr)
            raise SystemExit(1)
        client = build_directory_client(cfg, logger)
        if args.test_connection:
            try:
                check_connection(client, settings, logger)
            except DirectoryConnectionError as exc:
                logger.error("connection_test_failed", code=exc.code, err=exc.message)
                print(exc.user_message, file=sys.stderr)
                raise SystemExit(1)
            print("Connection successful.")
            return
        input_cfg = cfg.get("input", {}) or {}
        rows = read_input_table(
            args.input,
            sheet=input_cfg.get("sheet", 0),
            header=bool(input_cfg.get("header", True)),
            card_key_column=int(input_cfg.get("card_key_column", 0)),
            item_key_column=int(input_cfg.get("item_key_column", 1)),
        )
        logger.info("input_loaded", path=args.input, rows=len(rows))
        action_cls = registry.get(args.job)
        engine = ReconciliationEngine(
            client,
            sanitizer=build_sanitizer(cfg),
            logger=logger,
            action=action_cls() if action_cls is not None else None,
        )
        try:
            report = engine.run(rows, settings, on_progress=_print_progress)
        except DirectoryConnectionError as exc:
            logger.error("job_connection_failed", code=exc.code, err=exc.message)
            print(exc.user_message, file=sys.stderr)
            raise SystemExit(1)
        except JobAbortedError as exc:
            _write_report(exc.report, args.output_json)
            print("The job stopped before all rows were processed. Check the log for details.", file=sys.stderr)
            raise SystemExit(1)
        _write_report(report, args.output_json)
        if args.fail_on_error and report.has_failures:
            raise SystemExit(2)
    finally:
        logger.close()


__all__ = ["parse_args", "run_cli"]
