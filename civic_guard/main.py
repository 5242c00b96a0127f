"""
CivicGuard - Backend API
FastAPI + SQLModel, in-memory issue store, OpenAI-backed report agent
"""
from dotenv import load_dotenv
load_dotenv()  # Load .env before any other imports

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.deps import AppContainer
from .api.v1 import assistant, forum, issues, map, reports, users
from .config import get_settings
from .domain.errors import (
    AuthorizationError,
    CaptureError,
    CivicGuardError,
    InvalidTransitionError,
    NotFoundError,
    RemoteServiceError,
    ValidationError,
)
from .domain.store import IssueStore
from .infrastructure.locations import load_location_catalog, load_village_boundaries
from .seed_data import build_demo_state, empty_state

# Setup structured logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.JSONRenderer()
    ]
)

logger = structlog.get_logger()

settings = get_settings()

ERROR_STATUS = [
    (ValidationError, 422),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (CaptureError, 409),
    (RemoteServiceError, 502),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    catalog = await load_location_catalog(settings.location_data_path)
    boundaries = load_village_boundaries(settings.boundaries_path)
    state = build_demo_state() if settings.seed_demo_data else empty_state()
    store = IssueStore(state, settings.leader_email)
    app.state.container = AppContainer.from_settings(settings, store, catalog, boundaries)

    logger.info(
        "civic_guard_starting",
        port=settings.service_port,
        districts=len(catalog),
        village_boundaries=len(boundaries),
        issues=len(state.issues),
    )

    yield

    # Shutdown
    await app.state.container.aclose()
    logger.info("civic_guard_shutdown")


app = FastAPI(
    title="CivicGuard API",
    description="Citizen civic-issue reporting with a guided AI report agent",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(CivicGuardError)
async def civic_guard_error_handler(request: Request, exc: CivicGuardError):
    status_code = next((code for error, code in ERROR_STATUS if isinstance(exc, error)), 400)
    logger.warning(
        "request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        status_code=status_code,
        detail=str(exc),
    )
    content = {"detail": str(exc)}
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(status_code=status_code, content=content)


# Routers
app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
app.include_router(issues.router, prefix="/api/v1/issues", tags=["issues"])
app.include_router(forum.router, prefix="/api/v1/forum", tags=["forum"])
app.include_router(map.router, prefix="/api/v1/map", tags=["map"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["reports"])
app.include_router(assistant.router, prefix="/api/v1/assistant", tags=["assistant"])


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": settings.service_name}


@app.get("/")
async def root():
    return {"message": "CivicGuard API", "docs": "/docs"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("civic_guard.main:app", host="0.0.0.0", port=settings.service_port, reload=settings.debug)
