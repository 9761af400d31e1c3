# feedback_radar/app.py
import os
import time
from typing import Optional, List

# Load .env BEFORE any feedback_radar imports (they read env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, PlainTextResponse

from feedback_radar.ingestion import IngestionCoordinator, seed_mock_feedback
from feedback_radar.query_builder import FilterCriteria, DEFAULT_LIMIT
from feedback_radar import query_builder
from feedback_radar.schemas import FeedbackSubmission, FeedbackRecord
from feedback_radar.stats import StatisticsAggregator
from feedback_radar.errors import ValidationError, StoreFailure, E_INTERNAL
from feedback_radar import monitoring
from feedback_radar import db as dbmod

app = FastAPI(title="Feedback Radar API")

# Initialize DB tables on startup
dbmod.init_db()

# instantiate collaborators once; all of them share the module-level store
store = dbmod.RecordStore()
coordinator = IngestionCoordinator(store=store)
aggregator = StatisticsAggregator(store=store)

CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _error_response(status_code: int, error_code: str, message: str, details: Optional[dict] = None):
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "error_code": error_code,
            "message": message,
            "details": details or {},
        },
    )


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


# ---------------------------------------------------------------------------
# Endpoints (plain def: the oracle call blocks, FastAPI runs these in its threadpool)
# ---------------------------------------------------------------------------
@app.post("/api/feedback")
def submit_feedback(req: FeedbackSubmission):
    """
    POST /api/feedback
    Body: { "source": "...", "text": "..." }
    Returns the stored record with analysis_status "done" or "failed".
    """
    monitoring.logger.info("Received /api/feedback submission", extra={"source": req.source})
    try:
        record = coordinator.submit(req.source, req.text)
    except ValidationError as e:
        return _error_response(400, e.error_code, str(e))
    except StoreFailure as e:
        return _error_response(500, e.error_code, "Storage error", {"exception": str(e)})
    except Exception as e:
        monitoring.logger.exception("Unexpected error in /api/feedback handler")
        return _error_response(500, E_INTERNAL, "Internal server error", {"exception": str(e)})
    return JSONResponse(status_code=200, content=record.model_dump())


@app.get("/api/feedback")
def list_feedback(
    source: Optional[List[str]] = Query(None),
    sentiment: Optional[List[str]] = Query(None),
    urgency: Optional[List[int]] = Query(None),
    tag: Optional[List[str]] = Query(None),
    limit: int = DEFAULT_LIMIT,
):
    """
    GET /api/feedback?source=github&source=email&sentiment=negative&tag=bug&limit=50
    Every filter is repeatable; newest first.
    """
    criteria = FilterCriteria(
        source=source or [], sentiment=sentiment or [],
        urgency=urgency or [], tag=tag or [], limit=limit,
    )
    sql, params = query_builder.build(criteria)
    try:
        rows = store.select_many(sql, params)
    except StoreFailure as e:
        return _error_response(500, e.error_code, "Storage error", {"exception": str(e)})
    return JSONResponse(
        status_code=200,
        content=[FeedbackRecord.from_row(r).model_dump() for r in rows],
    )


@app.get("/api/stats")
def get_stats():
    try:
        stats = aggregator.compute_stats()
    except StoreFailure as e:
        return _error_response(500, e.error_code, "Storage error", {"exception": str(e)})
    return JSONResponse(status_code=200, content=stats.model_dump())


@app.post("/api/seed")
def seed():
    """Development helper: insert canned feedback rows in pending state."""
    try:
        results = seed_mock_feedback(store)
    except StoreFailure as e:
        return _error_response(500, e.error_code, "Storage error", {"exception": str(e)})
    return {"message": f"Seeded {len(results)} feedback entries", "results": results}


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
