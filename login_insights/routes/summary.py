from __future__ import annotations

from fastapi import APIRouter, HTTPException

from login_insights.schemas.api_contract import (
    RankedTargetsResponse,
    RankedUsersResponse,
    UserTableResponse,
)
from login_insights.services import run_store
from login_insights.services.pipeline import PipelineRun

router = APIRouter(prefix="/summary", tags=["summary"])

NO_DATA_DETAIL = "No data: run the pipeline first"


def require_latest_run() -> PipelineRun:
    run = run_store.get_latest()
    if run is None:
        raise HTTPException(status_code=404, detail=NO_DATA_DETAIL)
    return run


@router.get("/users", response_model=RankedUsersResponse)
def get_ranked_users():
    run = require_latest_run()
    return {
        "entry_count": len(run.ranked_users),
        "entries": [
            {"key": key, "count": bucket.count, "bucket": bucket}
            for key, bucket in run.ranked_users
        ],
    }


@router.get("/targets", response_model=RankedTargetsResponse)
def get_ranked_targets():
    run = require_latest_run()
    return {
        "entry_count": len(run.ranked_targets),
        "entries": [
            {"key": key, "count": bucket.count, "bucket": bucket}
            for key, bucket in run.ranked_targets
        ],
    }


@router.get("/table", response_model=UserTableResponse)
def get_user_table():
    run = require_latest_run()
    return {"row_count": len(run.user_table), "rows": run.user_table}
