from fastapi import APIRouter, HTTPException
import logging

from login_insights.schemas.api_contract import RunResponse
from login_insights.services import run_store
from login_insights.services.artifacts import artifact_filename
from login_insights.services.config_loader import get_pipeline_settings
from login_insights.services.event_source import (
    AuthSession,
    EventSourceError,
    create_event_source_client,
)
from login_insights.services.normalization import MalformedEventError
from login_insights.services.pipeline import run_pipeline

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/run", tags=["run"])


@router.post("/", response_model=RunResponse)
async def run_events_pipeline():
    try:
        settings = get_pipeline_settings()
        async with create_event_source_client(session=AuthSession()) as source:
            run = await run_pipeline(
                source,
                page_size=settings["page_size"],
                table_limit=settings["table_limit"],
            )
    except EventSourceError as e:
        logger.error(f"Event source failure: {e}")
        raise HTTPException(status_code=502, detail=f"Event source failure: {e}")
    except MalformedEventError as e:
        logger.error(f"Malformed event data: {e}")
        raise HTTPException(status_code=422, detail=f"Malformed event data: {e}")
    except RuntimeError as e:
        logger.error(f"Configuration error: {e}")
        raise HTTPException(status_code=500, detail=f"Configuration error: {e}")

    run_store.set_latest(run)

    return {
        "status": "success",
        "message": "Data is ready for download.",
        "entry_count": run.entry_count,
        "page_count": run.page_count,
        "event_count": len(run.events),
        "user_count": len(run.users),
        "target_count": len(run.targets),
        "completed_at": run.completed_at.isoformat().replace("+00:00", "Z"),
        "download_filename": artifact_filename(run.completed_at),
    }
