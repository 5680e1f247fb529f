from fastapi import APIRouter
from fastapi.responses import Response

from login_insights.routes.summary import require_latest_run
from login_insights.services.artifacts import artifact_filename, serialize_events

router = APIRouter(prefix="/download", tags=["download"])


@router.get("/")
def download_events():
    """Normalized events of the latest run as a JSON file attachment."""
    run = require_latest_run()
    filename = artifact_filename(run.completed_at)
    return Response(
        content=serialize_events(run.events),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
