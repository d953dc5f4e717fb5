"""Command-line interface for a catalog workspace.

Usage:
    i18nvault [--root DIR] [--verbose] coverage
    i18nvault lint [--locale L] [--namespace NS] [--severity error|warning|info]
    i18nvault export {json,csv,xliff} [--namespace NS] [--locale L] [--missing-only] [-o FILE]
    i18nvault snapshots [--locale L]
    i18nvault snapshot [--locale L] [--credential TOKEN]
    i18nvault history [--locale L] [--namespace NS] [--action A] [--limit N] [--offset N]
    i18nvault locales

Reports are printed to stdout as JSON. Exit codes:
    0 - success
    1 - lint found error-severity issues
    2 - the operation failed (message on stderr)

Python 3.13+.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from i18nvault.analysis.quality import QualityReport
from i18nvault.enums import ExportFormat, Severity
from i18nvault.errors import I18nVaultError
from i18nvault.operations.transfer import ExportFilter
from i18nvault.service import CatalogService

logger = logging.getLogger(__name__)

__all__ = ["main"]


def _emit(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="i18nvault",
        description="Inspect and maintain JSON message catalogs.",
    )
    parser.add_argument(
        "--root",
        type=Path,
        default=None,
        help="Workspace root (default: $I18NVAULT_ROOT or the working directory).",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output to stderr.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("coverage", help="Per-locale and per-namespace coverage report.")

    lint = commands.add_parser("lint", help="Quality scan; exits 1 on error-severity issues.")
    lint.add_argument("--locale", action="append", dest="locales")
    lint.add_argument("--namespace", action="append", dest="namespaces")
    lint.add_argument("--severity", choices=[s.value for s in Severity])

    export = commands.add_parser("export", help="Export the key matrix.")
    export.add_argument("format", choices=[f.value for f in ExportFormat])
    export.add_argument("--namespace")
    export.add_argument("--locale")
    export.add_argument("--missing-only", action="store_true")
    export.add_argument("--output", "-o", type=Path, help="Write to FILE instead of stdout.")

    snapshots = commands.add_parser("snapshots", help="List snapshots, newest first.")
    snapshots.add_argument("--locale")

    snapshot = commands.add_parser("snapshot", help="Snapshot one locale or all locales.")
    snapshot.add_argument("--locale")
    snapshot.add_argument(
        "--credential",
        default=os.getenv("I18NVAULT_CREDENTIAL"),
        help="Admin credential (default: $I18NVAULT_CREDENTIAL).",
    )

    history = commands.add_parser("history", help="Query the change ledger.")
    history.add_argument("--locale")
    history.add_argument("--namespace")
    history.add_argument("--action")
    history.add_argument("--source")
    history.add_argument("--limit", type=int, default=50)
    history.add_argument("--offset", type=int, default=0)

    commands.add_parser("locales", help="List locales with labels and flags.")
    return parser.parse_args(argv)


def _run(service: CatalogService, args: argparse.Namespace) -> int:
    match args.command:
        case "coverage":
            _emit(service.get_coverage_report().to_dict())
        case "lint":
            report = service.run_quality_scan(locales=args.locales, namespaces=args.namespaces)
            shown = (
                QualityReport.from_issues(report.filter(severity=Severity(args.severity)))
                if args.severity
                else report
            )
            _emit(shown.to_dict())
            if report.has_errors:
                return 1
        case "export":
            result = service.export_catalog(
                args.format,
                ExportFilter(
                    namespace=args.namespace,
                    locale=args.locale,
                    missing_only=args.missing_only,
                ),
            )
            if args.output is None:
                sys.stdout.write(result.content.decode("utf-8"))
            else:
                args.output.write_bytes(result.content)
                logger.info("Wrote %d key(s) to %s", result.key_count, args.output)
        case "snapshots":
            _emit([info.to_dict() for info in service.list_snapshots(args.locale)])
        case "snapshot":
            created = service.create_snapshot(args.locale, credential=args.credential)
            _emit([info.to_dict() for info in created])
        case "history":
            page = service.get_changelog(
                locale=args.locale,
                namespace=args.namespace,
                action=args.action,
                source=args.source,
                limit=args.limit,
                offset=args.offset,
            )
            _emit(page.to_dict())
        case "locales":
            _emit([info.to_dict() for info in service.list_locales()])
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run one CLI command and return its exit code."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        service = CatalogService.from_env(args.root)
        return _run(service, args)
    except (I18nVaultError, ValueError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2
