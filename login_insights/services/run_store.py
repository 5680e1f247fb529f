"""
login_insights/services/run_store.py

Holds the latest completed pipeline run for the lifetime of the process.
Nothing is written to disk; a new run replaces the previous one.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from login_insights.services.pipeline import PipelineRun

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_latest: Optional[PipelineRun] = None


def set_latest(run: PipelineRun) -> None:
    global _latest
    with _lock:
        _latest = run
    logger.info(f"Stored run completed at {run.completed_at.isoformat()}")


def get_latest() -> Optional[PipelineRun]:
    with _lock:
        return _latest


def clear() -> None:
    global _latest
    with _lock:
        _latest = None
