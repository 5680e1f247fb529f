#!/usr/bin/env python
"""
login-insights command line.

    login-insights fetch [--output-dir DIR] [--page-size N] [--top N]
    login-insights normalize INPUT [-o OUTPUT]
    login-insights validate-config
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from login_insights.services import charts
from login_insights.services.artifacts import serialize_events, write_artifact
from login_insights.services.config_loader import (
    get_pipeline_settings,
    load_config,
    validate_config,
)
from login_insights.services.event_source import (
    AuthSession,
    EventSourceError,
    create_event_source_client,
)
from login_insights.services.normalization import MalformedEventError, normalize_file
from login_insights.services.pipeline import PipelineRun, run_pipeline

EXIT_TRANSPORT_ERROR = 2
EXIT_MALFORMED_DATA = 3


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


async def _fetch(page_size: int, table_limit: int) -> PipelineRun:
    async with create_event_source_client(session=AuthSession()) as source:
        return await run_pipeline(source, page_size=page_size, table_limit=table_limit)


def _print_table(run: PipelineRun) -> None:
    print(f"{'#':>3}  {'user':<40} {'count':>6} {'success %':>10} {'failure %':>10}")
    for row in run.user_table:
        print(
            f"{row.rank:>3}  {row.user_name:<40} {row.count:>6} "
            f"{row.success_pct or '-':>10} {row.failure_pct or '-':>10}"
        )


def cmd_fetch(args: argparse.Namespace) -> int:
    try:
        settings = get_pipeline_settings()
    except RuntimeError as exc:
        print(f"FAIL  Config error: {exc}", file=sys.stderr)
        return 1
    page_size = settings["page_size"] if args.page_size is None else args.page_size
    table_limit = settings["table_limit"] if args.top is None else args.top

    try:
        run = asyncio.run(_fetch(page_size, table_limit))
    except EventSourceError as exc:
        print(f"Event source failure: {exc}", file=sys.stderr)
        return EXIT_TRANSPORT_ERROR
    except MalformedEventError as exc:
        print(f"Malformed event data: {exc}", file=sys.stderr)
        return EXIT_MALFORMED_DATA

    output_dir = Path(args.output_dir)
    artifact = write_artifact(run.events, output_dir, run.completed_at)
    charts.plot_ranked_counts(
        run.ranked_targets, charts.TARGETS_CHART_TITLE, output_dir / "targets.png"
    )
    charts.plot_ranked_counts(
        run.ranked_users[: settings["chart_user_limit"]],
        charts.USERS_CHART_TITLE,
        output_dir / "users.png",
    )

    print(f"Wrote {len(run.events)} events to {artifact}")
    _print_table(run)
    return 0


def cmd_normalize(args: argparse.Namespace) -> int:
    try:
        events = normalize_file(Path(args.input))
    except MalformedEventError as exc:
        print(f"Malformed event data: {exc}", file=sys.stderr)
        return EXIT_MALFORMED_DATA
    except (OSError, ValueError) as exc:
        print(f"Failed to read JSON: {exc}", file=sys.stderr)
        return 2

    payload = serialize_events(events)
    if args.output:
        Path(args.output).write_text(payload, encoding="utf-8")
    else:
        print(payload)
    return 0


def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        config = load_config(force_reload=True)
    except RuntimeError as exc:
        print(f"FAIL  Config load error: {exc}", file=sys.stderr)
        return 1

    errors = validate_config(config)
    if errors:
        for err in errors:
            print(f"FAIL  {err}", file=sys.stderr)
        return 1

    print("OK    All checks passed.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="login-insights",
        description="Fetch, normalize and summarize login events from the remote event API.",
    )
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="Run the pipeline against the configured API")
    fetch.add_argument("--output-dir", default=".", help="Where to write the JSON artifact and charts")
    fetch.add_argument("--page-size", type=_positive_int, help="Entries per request (default from config)")
    fetch.add_argument("--top", type=_positive_int, help="Rows in the printed user table (default from config)")
    fetch.set_defaults(func=cmd_fetch)

    normalize = sub.add_parser("normalize", help="Normalize a local JSON array of raw events")
    normalize.add_argument("input", help="Path to JSON array of raw events")
    normalize.add_argument("-o", "--output", help="Output file (defaults to stdout)")
    normalize.set_defaults(func=cmd_normalize)

    validate = sub.add_parser("validate-config", help="Validate config/event_source.yaml")
    validate.set_defaults(func=cmd_validate_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
