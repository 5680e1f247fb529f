# =============================================================================
# pipeline.py: one fetch → normalize → aggregate → rank run
#
# Flow:
#   fetch_event_count()
#       → plan page ranges
#       → fetch_event_page() once per range, strictly one after another
#       → normalize every raw record (one bad record fails the run)
#       → reduce by user and by target
#       → rank both aggregates and build the top-users table
#       → return PipelineRun
# =============================================================================
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from login_insights.schemas.aggregates import TargetBucket, UserBucket
from login_insights.schemas.api_contract import UserSummaryRow
from login_insights.schemas.event_models import NormalizedEvent
from login_insights.services.aggregation import reduce_targets, reduce_users
from login_insights.services.normalization import normalize_events
from login_insights.services.pagination import DEFAULT_PAGE_SIZE, get_pages
from login_insights.services.ranking import (
    DEFAULT_TABLE_LIMIT,
    build_user_table,
    sort_by_login_count,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineRun:
    entry_count: int
    page_count: int
    events: List[NormalizedEvent]
    users: Dict[str, UserBucket]
    targets: Dict[str, TargetBucket]
    ranked_users: List[Tuple[str, UserBucket]]
    ranked_targets: List[Tuple[str, TargetBucket]]
    user_table: List[UserSummaryRow]
    completed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


async def fetch_all_events(source: Any, page_size: int = DEFAULT_PAGE_SIZE) -> Tuple[int, int, List[Any]]:
    """Fetch every raw entry from source, one page at a time.

    source needs async fetch_event_count() and fetch_event_page(start, end).
    Returns (entry_count, page_count, raw_events).
    """
    entry_count = await source.fetch_event_count()
    pages = get_pages(entry_count, page_size)
    logger.info(f"  [1/4] EntryCount={entry_count}, planned {len(pages)} page(s) of {page_size}")

    raw_events: List[Any] = []
    for page in pages:
        raw_events.extend(await source.fetch_event_page(page.start, page.end))
    logger.info(f"  [2/4] Fetched {len(raw_events)} raw event(s)")
    return entry_count, len(pages), raw_events


def summarize_events(
    events: List[NormalizedEvent],
    entry_count: int,
    page_count: int,
    table_limit: int = DEFAULT_TABLE_LIMIT,
) -> PipelineRun:
    users = reduce_users(events)
    targets = reduce_targets(events)
    if users is None or targets is None:
        raise ValueError("No normalized events to summarize")

    ranked_users = sort_by_login_count(users) or []
    ranked_targets = sort_by_login_count(targets) or []
    logger.info(f"  [4/4] Aggregated {len(users)} user(s) and {len(targets)} target(s)")

    return PipelineRun(
        entry_count=entry_count,
        page_count=page_count,
        events=events,
        users=users,
        targets=targets,
        ranked_users=ranked_users,
        ranked_targets=ranked_targets,
        user_table=build_user_table(ranked_users, limit=table_limit) or [],
    )


async def run_pipeline(
    source: Any,
    page_size: int = DEFAULT_PAGE_SIZE,
    table_limit: int = DEFAULT_TABLE_LIMIT,
) -> PipelineRun:
    """Execute one full run against source. Any failure aborts the run."""
    start = datetime.now(timezone.utc)
    logger.info(f"Pipeline starting, page_size={page_size}")

    try:
        entry_count, page_count, raw_events = await fetch_all_events(source, page_size)
        events = normalize_events(raw_events)
        logger.info(f"  [3/4] Normalized {len(events)} event(s)")
        run = summarize_events(events, entry_count, page_count, table_limit)
    except Exception as e:
        logger.error(f"Pipeline failed: {e}")
        raise

    elapsed = (run.completed_at - start).total_seconds()
    logger.info(f"Pipeline complete in {elapsed:.2f}s, {len(run.events)} events.")
    return run
