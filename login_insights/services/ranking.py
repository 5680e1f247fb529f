from __future__ import annotations

from typing import Dict, List, Optional, Tuple, TypeVar

from login_insights.schemas.aggregates import SuccessFailureTally, UserBucket
from login_insights.schemas.api_contract import UserSummaryRow

DEFAULT_TABLE_LIMIT = 50

BucketT = TypeVar("BucketT")


def sort_by_login_count(
    buckets: Optional[Dict[str, BucketT]],
) -> Optional[List[Tuple[str, BucketT]]]:
    """Order buckets by count, highest first; equal counts sort by key."""
    if buckets is None:
        return None
    return sorted(buckets.items(), key=lambda item: (-item[1].count, item[0]))


def get_percentage_success_failure(tally: SuccessFailureTally) -> Tuple[str, str]:
    """Return (success %, failure %) rounded to two places.

    Each side is rounded on its own, so the pair need not add up to exactly
    100. A tally with no attempts yields ("NaN", "NaN").
    """
    total = tally.success + tally.failure
    if total == 0:
        return ("NaN", "NaN")
    return (
        f"{tally.success / total * 100:.2f}",
        f"{tally.failure / total * 100:.2f}",
    )


def build_user_table(
    ranked_users: Optional[List[Tuple[str, UserBucket]]],
    limit: int = DEFAULT_TABLE_LIMIT,
) -> Optional[List[UserSummaryRow]]:
    if ranked_users is None:
        return None

    rows: List[UserSummaryRow] = []
    for rank, (user_name, bucket) in enumerate(ranked_users[:limit], start=1):
        tally = bucket.success_failure_tally
        success_pct: Optional[str] = None
        failure_pct: Optional[str] = None
        if tally.success + tally.failure > 0:
            success_pct, failure_pct = get_percentage_success_failure(tally)
        rows.append(
            UserSummaryRow(
                rank=rank,
                user_name=user_name,
                count=bucket.count,
                success=tally.success,
                failure=tally.failure,
                success_pct=success_pct,
                failure_pct=failure_pct,
            )
        )
    return rows
