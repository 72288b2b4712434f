"""
survey-csv command line.

Usage:
    survey-csv serve [--host 0.0.0.0] [--port 8000] [--reload]
    survey-csv export --password PW [--output FILE]
    survey-csv stats
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .auth import AuthManager
from .config import configure_logging, load_settings
from .export import build_export
from .stats import calculate_stats
from .storage import FileStore, SurveyStorage

logger = logging.getLogger(__name__)


def _storage(settings) -> SurveyStorage:
    return SurveyStorage(FileStore(settings.data_dir), key=settings.storage_key)


def cmd_serve(args, settings) -> int:
    import uvicorn
    logger.info("Starting survey-csv API on %s:%d", args.host, args.port)
    uvicorn.run("survey_csv.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def cmd_export(args, settings) -> int:
    if not AuthManager(settings.admin_password).authenticate(args.password or ""):
        print("密碼錯誤，請重試", file=sys.stderr)
        return 1

    export = build_export(_storage(settings))
    out = Path(args.output) if args.output else Path(export.filename)
    out.write_bytes(export.content)
    print(f"Wrote {out} ({len(export.content):,} bytes, sha256 {export.sha256[:12]})")
    return 0


def cmd_stats(args, settings) -> int:
    stats = calculate_stats(_storage(settings).read_all())
    print(f"總回覆數: {stats.total}")
    print("\n地區統計")
    for region, count in stats.by_region.items():
        print(f"  {region}: {count}")
    print("\n職業統計")
    for occupation, count in stats.by_occupation.items():
        print(f"  {occupation}: {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survey-csv",
        description="Survey responses stored as a single CSV document",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=cmd_serve)

    export = subparsers.add_parser("export", help="Write the BOM-prefixed CSV export")
    export.add_argument("--password", required=True, help="Admin password")
    export.add_argument("--output", help="Output path (default: timestamped filename)")
    export.set_defaults(func=cmd_export)

    stats = subparsers.add_parser("stats", help="Print response counts")
    stats.set_defaults(func=cmd_stats)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 2

    settings = load_settings()
    configure_logging(settings.log_level)
    return args.func(args, settings)


if __name__ == "__main__":
    sys.exit(main())
