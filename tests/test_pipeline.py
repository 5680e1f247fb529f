from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Tuple

import pytest

from login_insights.services.event_source import EventSourceError
from login_insights.services.normalization import MalformedEventError
from login_insights.services.pipeline import run_pipeline


def _raw(event_id: int, user: str, target: str, action: str = "failed") -> Dict[str, Any]:
    return {
        "id": event_id,
        "DateTimeAndStuff": 1600000000 + event_id,
        "EVENT_0_ACTION": action,
        "user_Name": user,
        "target": target,
        "ips": [f"203.0.113.{event_id % 250}"],
    }


class _FakeSource:
    """In-memory event source that also checks pages are fetched one at a time."""

    def __init__(self, raw_events: List[Dict[str, Any]]):
        self.raw_events = raw_events
        self.page_calls: List[Tuple[int, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch_event_count(self) -> int:
        return len(self.raw_events)

    async def fetch_event_page(self, start: int, end: int) -> List[Dict[str, Any]]:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0)
        self.page_calls.append((start, end))
        self.in_flight -= 1
        return self.raw_events[start - 1:end]


def _sample_raw_events() -> List[Dict[str, Any]]:
    users = ["Username is: Bob@Example.com", "alice@example.com", "BOB@example.com"]
    targets = ["mail.example.com", "vpn.example.com"]
    return [
        _raw(i, users[i % 3], targets[i % 2], "Login Success" if i % 4 == 0 else "failed")
        for i in range(1, 12)
    ]


def test_run_pipeline_fetches_pages_sequentially():
    source = _FakeSource(_sample_raw_events())
    run = asyncio.run(run_pipeline(source, page_size=4))

    assert source.page_calls == [(1, 4), (5, 8), (9, 11)]
    assert source.max_in_flight == 1
    assert run.entry_count == 11
    assert run.page_count == 3
    assert len(run.events) == 11


def test_run_pipeline_aggregates_and_ranks():
    run = asyncio.run(run_pipeline(_FakeSource(_sample_raw_events()), page_size=5))

    # "Username is: Bob@..." and "BOB@..." collapse into one user.
    assert set(run.users) == {"bob@example.com", "alice@example.com"}
    assert run.ranked_users[0][0] == "bob@example.com"
    assert run.ranked_users[0][1].count == 7
    assert [key for key, _ in run.ranked_targets] == ["vpn.example.com", "mail.example.com"]
    assert sum(b.count for b in run.users.values()) == len(run.events)
    assert sum(b.count for b in run.targets.values()) == len(run.events)

    assert [row.user_name for row in run.user_table] == ["bob@example.com", "alice@example.com"]
    bob = run.user_table[0]
    assert bob.success + bob.failure == bob.count


def test_run_pipeline_limits_user_table():
    run = asyncio.run(run_pipeline(_FakeSource(_sample_raw_events()), table_limit=1))
    assert len(run.user_table) == 1
    assert len(run.ranked_users) == 2


def test_run_pipeline_with_no_entries_yields_empty_run():
    source = _FakeSource([])
    run = asyncio.run(run_pipeline(source))

    assert source.page_calls == []
    assert run.events == []
    assert run.users == {}
    assert run.ranked_targets == []
    assert run.user_table == []


def test_run_pipeline_aborts_on_malformed_record():
    raw_events = _sample_raw_events()
    raw_events[5]["ips"] = []

    with pytest.raises(MalformedEventError):
        asyncio.run(run_pipeline(_FakeSource(raw_events)))


def test_run_pipeline_aborts_on_transport_failure():
    class _BrokenSource(_FakeSource):
        async def fetch_event_page(self, start: int, end: int):
            if start > 1:
                raise EventSourceError("page fetch failed")
            return await super().fetch_event_page(start, end)

    source = _BrokenSource(_sample_raw_events())
    with pytest.raises(EventSourceError):
        asyncio.run(run_pipeline(source, page_size=5))
    assert source.page_calls == [(1, 5)]
