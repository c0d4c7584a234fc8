# taskboard/main.py
"""FastAPI application for the household task board."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard.config import ALLOWED_ORIGINS, LOG_LEVEL
from taskboard.database import create_db_and_tables
from taskboard.errors import TaskboardError
from taskboard.routes.notifications import router as notifications_router
from taskboard.routes.recurring_tasks import router as recurring_tasks_router
from taskboard.routes.review import router as review_router
from taskboard.routes.streaks import router as streaks_router
from taskboard.routes.tasks import router as tasks_router
from taskboard.routes.weeks import router as weeks_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup and add any new columns."""
    create_db_and_tables()
    yield


app = FastAPI(title="Household Task Board", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type"],
)

app.include_router(tasks_router)
app.include_router(weeks_router)
app.include_router(recurring_tasks_router)
app.include_router(streaks_router)
app.include_router(review_router)
app.include_router(notifications_router)


@app.exception_handler(TaskboardError)
async def integrity_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    """Stored data the board logic cannot interpret. Fail the request loudly."""
    logger.error(f"Data integrity error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "taskboard-api"}
