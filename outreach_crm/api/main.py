"""
HTTP entry point for the outreach CRM.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import analytics, prospects, qc_queue, tasks, teams, templates
from .schemas import HealthResponse
from ..core.bootstrap import seed_demo_data
from ..core.config import CORS_ORIGINS, VERSION, debug_enabled, seed_demo_enabled, validate_config
from ..core.db import health_check, init_db
from ..core.errors import CRMError, InternalError
from ..util.logging import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    for issue in validate_config():
        logger.warning(f"Configuration issue: {issue}")

    init_db()
    if seed_demo_enabled():
        seed_demo_data()
    yield


# Initialize the FastAPI application
app = FastAPI(
    title="Outreach CRM API",
    version=VERSION,
    description="Sales outreach pipeline with QC review and daily tasks",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None,
    lifespan=lifespan
)

# Add CORS middleware to allow frontend connections
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(teams.router, prefix="/api/teams", tags=["teams"])
app.include_router(prospects.router, prefix="/api/prospects", tags=["prospects"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["tasks"])
app.include_router(templates.router, prefix="/api/templates", tags=["templates"])
app.include_router(qc_queue.router, prefix="/api/qc-queue", tags=["qc"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["analytics"])


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    db_health = health_check()

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health
    )


def _internal_error_response(exc: Exception) -> JSONResponse:
    content = {"message": "Internal server error"}
    if debug_enabled():
        content["debug"] = str(exc)
    return JSONResponse(status_code=500, content=content)


def _error_field(loc) -> Optional[str]:
    # loc looks like ("body", "stage") or ("query", "teamId")
    names = [str(part) for part in loc if not isinstance(part, int)]
    if len(names) > 1 and names[0] in ("body", "query", "path", "header"):
        names = names[1:]
    return names[-1] if names else None


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request, exc):
    """Report the first violated field as a 400."""
    errors = exc.errors()
    logger.log_schema_validation_error(f"{request.method} {request.url.path}", list(errors))

    if not errors:
        return JSONResponse(status_code=400, content={"message": "Invalid request"})

    first = errors[0]
    message = first.get("msg", "Invalid request")
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]

    content = {"message": message}
    field = _error_field(first.get("loc", ()))
    if field:
        content["field"] = field
    return JSONResponse(status_code=400, content=content)


@app.exception_handler(CRMError)
async def crm_exception_handler(request, exc):
    if isinstance(exc, InternalError):
        logger.error(f"Internal error on {request.method} {request.url.path}: {exc.message}")
        return _internal_error_response(exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Handle all unhandled exceptions."""
    logger.error(f"Unhandled exception: {exc}")
    return _internal_error_response(exc)
