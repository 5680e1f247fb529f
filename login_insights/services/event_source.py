"""
Client for the remote /get-events login-event API.

The API key comes from the /auth endpoint and is cached on an AuthSession,
so it is requested at most once per session. Requests are never retried:
any failure surfaces as EventSourceError.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from login_insights.services.config_loader import get_api_settings

logger = logging.getLogger(__name__)


class EventSourceError(Exception):
    """Raised when the event API cannot be reached or answers unexpectedly."""


@dataclass
class AuthSession:
    """Holds the API key for one pipeline run."""

    token: Optional[str] = None


class EventSourceClient:
    """
    Async client for the login-event API.

    Usage:
        async with EventSourceClient(base_url="https://api.example.com") as source:
            total = await source.fetch_event_count()
            events = await source.fetch_event_page(1, 500)
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[AuthSession] = None,
        auth_path: str = "/auth",
        events_path: str = "/get-events",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth_url = f"{self.base_url}{auth_path}"
        self.events_url = f"{self.base_url}{events_path}"
        self.session = session if session is not None else AuthSession()
        self.timeout = timeout

        self.client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def get_auth(self) -> str:
        """Return the API key, fetching it only if the session has none."""
        if self.session.token:
            logger.debug("Reusing cached API key")
            return self.session.token

        try:
            response = await self.client.get(self.auth_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EventSourceError(f"Auth request to {self.auth_url} failed: {e}") from e

        self.session.token = response.text.strip()
        logger.info("Fetched API key")
        return self.session.token

    async def _get_events(self, params: Dict[str, int]) -> Any:
        key = await self.get_auth()
        try:
            response = await self.client.get(
                self.events_url,
                params=params,
                headers={"Authorization": key},
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            raise EventSourceError(f"Request to {self.events_url} failed: {e}") from e
        except ValueError as e:
            raise EventSourceError(f"{self.events_url} returned a non-JSON body") from e

    async def fetch_event_count(self) -> int:
        """Total number of entries available, as reported by EntryCount."""
        data = await self._get_events({})
        if not isinstance(data, dict) or "EntryCount" not in data:
            raise EventSourceError("Event count response has no EntryCount")
        try:
            return int(data["EntryCount"])
        except (TypeError, ValueError) as e:
            raise EventSourceError(f"EntryCount is not an integer: {data['EntryCount']!r}") from e

    async def fetch_event_page(self, start: int, end: int) -> List[Any]:
        """Fetch raw entries start..end inclusive."""
        params: Dict[str, int] = {}
        if start > 0 and start <= end:
            params = {"from": start, "to": end}

        data = await self._get_events(params)
        if not isinstance(data, list):
            raise EventSourceError(
                f"Page {start}-{end} returned {type(data).__name__}, expected a JSON array"
            )
        logger.debug(f"Fetched {len(data)} event(s) for page {start}-{end}")
        return data

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_event_source_client(
    session: Optional[AuthSession] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> EventSourceClient:
    """
    Factory function to create an EventSourceClient from config/event_source.yaml.

    Args:
        session: Auth session to share; a fresh one is created when omitted
        transport: Optional httpx transport (tests pass httpx.MockTransport)

    Returns:
        Configured EventSourceClient instance
    """
    settings = get_api_settings()
    return EventSourceClient(
        base_url=settings["base_url"],
        session=session,
        auth_path=settings["auth_path"],
        events_path=settings["events_path"],
        timeout=settings["timeout_seconds"],
        transport=transport,
    )
