"""
login_insights/services/aggregation.py

Folds normalized login events into per-user and per-target buckets.

Both reducers return a fresh dict keyed in first-seen order, or None when
called without data (callers check for None and skip).
"""
from __future__ import annotations

from typing import Dict, Optional, Sequence

from login_insights.schemas.aggregates import (
    TargetBucket,
    TargetLoginAttempt,
    UserBucket,
    UserLoginAttempt,
)
from login_insights.schemas.event_models import LOGON_SUCCESS, NormalizedEvent


def reduce_users(events: Optional[Sequence[NormalizedEvent]]) -> Optional[Dict[str, UserBucket]]:
    if events is None:
        return None

    buckets: Dict[str, UserBucket] = {}
    for event in events:
        bucket = buckets.setdefault(event.user_name, UserBucket())
        bucket.count += 1
        bucket.login_attempts.append(
            UserLoginAttempt(
                target=event.target,
                id=event.id,
                ip=event.source_ip,
                action=event.action,
            )
        )
        if event.action == LOGON_SUCCESS:
            bucket.success_failure_tally.success += 1
        else:
            bucket.success_failure_tally.failure += 1
    return buckets


def reduce_targets(events: Optional[Sequence[NormalizedEvent]]) -> Optional[Dict[str, TargetBucket]]:
    if events is None:
        return None

    buckets: Dict[str, TargetBucket] = {}
    for event in events:
        bucket = buckets.setdefault(event.target, TargetBucket())
        bucket.count += 1
        bucket.login_attempts.append(
            TargetLoginAttempt(
                user=event.user_name,
                id=event.id,
                ip=event.source_ip,
                action=event.action,
            )
        )
    return buckets
