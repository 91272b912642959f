# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Project Tracker Service
=======================
Projects own members; each member holds exactly one function (role), and
admin-flagged functions grant project-admin rights. Projects aggregate
tickets, milestones and an audit trail of create/update events.

Invariants enforced on every save:
    a project has at least one member holding an admin function
    a user is a member of a project at most once
    project names are present and unique

Port: 8010
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tracker.controllers import (
    function_controller,
    milestone_controller,
    project_controller,
    system_controller,
    ticket_controller,
    user_controller,
)
from tracker.core.config import settings
from tracker.core.database import init_schema
from tracker.core.dependencies import get_container
from tracker.core.exceptions import RecordInvalid, StaleProjectError
from tracker.core.logging import get_logger
from tracker.middleware import MetricsMiddleware, RequestIDMiddleware

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    container = get_container()
    init_schema(container.engine)
    if settings.SEED_DEFAULT_FUNCTIONS:
        container.registry.seed_defaults()
    container.project_service.seed_gauges()
    logger.info("%s v%s started", settings.SERVICE_NAME, settings.SERVICE_VERSION)
    yield
    container.engine.dispose()
    logger.info("Shutting down, connection pool disposed")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Project Tracker Service",
    description="Projects, members and roles, milestones, tickets and their audit trail.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(RecordInvalid)
async def record_invalid_handler(request: Request, exc: RecordInvalid):
    return JSONResponse(status_code=422, content={"error": "validation_failed", "errors": exc.errors})


@app.exception_handler(StaleProjectError)
async def stale_project_handler(request: Request, exc: StaleProjectError):
    logger.warning("Stale project write: %s", exc)
    return JSONResponse(status_code=409, content={"error": "conflict", "detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    return JSONResponse(status_code=500, content={"error": "internal_server_error", "detail": str(exc)})


# ── Routers ───────────────────────────────────────────────────────────────
app.include_router(system_controller.router)
app.include_router(user_controller.router)
app.include_router(function_controller.router)
app.include_router(project_controller.router)
app.include_router(milestone_controller.router)
app.include_router(ticket_controller.router)


# ── Entrypoint ────────────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT, log_level="info")
