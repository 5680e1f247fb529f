from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from login_insights.routes.summary import require_latest_run
from login_insights.services import charts
from login_insights.services.config_loader import get_pipeline_settings

router = APIRouter(prefix="/charts", tags=["charts"])


def _png_response(png) -> Response:
    if png is None:
        raise HTTPException(status_code=404, detail="No entries to chart")
    return Response(content=png, media_type="image/png")


# async so pyplot is only ever driven from the event loop thread
@router.get("/targets.png")
async def get_targets_chart():
    run = require_latest_run()
    png = charts.render_ranked_counts_png(run.ranked_targets, charts.TARGETS_CHART_TITLE)
    return _png_response(png)


@router.get("/users.png")
async def get_users_chart():
    run = require_latest_run()
    limit = get_pipeline_settings()["chart_user_limit"]
    png = charts.render_ranked_counts_png(run.ranked_users[:limit], charts.USERS_CHART_TITLE)
    return _png_response(png)
