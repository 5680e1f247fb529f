from fastapi import FastAPI
from login_insights.routes.charts import router as charts_router
from login_insights.routes.download import router as download_router
from login_insights.routes.run import router as run_router
from login_insights.routes.summary import router as summary_router

app = FastAPI(title="Login Insights")

app.include_router(run_router)
app.include_router(summary_router)
app.include_router(download_router)
app.include_router(charts_router)

@app.get("/health")
def health():
    return {"ok": True}
