"""
FastAPI Application - HTTP entry point

REST API for replaying limit order sessions through the clearing engine.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clearing import __version__
from clearing.api.models import ErrorResponse, HealthResponse
from clearing.api.routes import sessions
from clearing.config import get_settings
from clearing.services.session_service import SessionService
from clearing.utils.exceptions import BaseMatchingEngineException, SessionClosedException
from clearing.utils.logger import get_logger

logger = logging.getLogger(__name__)

# Global instances
session_service: SessionService = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    
    Configures logging from settings and initializes the session service
    on startup.
    """
    global session_service
    
    settings = get_settings()
    get_logger(
        log_level=settings.log_level,
        log_dir=settings.log_dir,
        use_json=settings.use_json_logs,
    )
    
    logger.info("Starting clearing engine replay API")
    session_service = SessionService(settings)
    sessions.set_session_service(session_service)
    
    yield
    
    logger.info("Shutting down clearing engine replay API")
    sessions.set_session_service(None)


app = FastAPI(
    title="Clearing Engine Replay API",
    description="""
    Price-time priority limit order clearing engine.
    
    ## Endpoints
    * **POST /api/v1/sessions/replay**: Replay a session and return executions and residuals
    * **GET /health**: Service health
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add unique request ID to each request for tracking."""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    
    return response


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(f"Validation error [{request_id}]: {exc.errors()}")
    
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            message="Request validation failed",
            detail=str(exc.errors()),
            timestamp=datetime.now(timezone.utc)
        ).model_dump(mode='json')
    )


@app.exception_handler(BaseMatchingEngineException)
async def engine_exception_handler(request: Request, exc: BaseMatchingEngineException):
    """Handle rejected orders, malformed input and book errors."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.warning(f"{type(exc).__name__} [{request_id}]: {exc.message}")
    
    if isinstance(exc, SessionClosedException):
        status_code = status.HTTP_409_CONFLICT
    else:
        status_code = status.HTTP_400_BAD_REQUEST
    
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            message=exc.message,
            detail=str(exc.details) if exc.details else None,
            timestamp=datetime.now(timezone.utc)
        ).model_dump(mode='json')
    )


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check"
)
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        sessions_replayed=session_service.sessions_replayed if session_service else 0
    )


app.include_router(sessions.router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Clearing Engine Replay API",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health"
    }


def run() -> None:
    """Serve the API with uvicorn using configured host and port."""
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "clearing.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level="info"
    )


if __name__ == "__main__":
    run()
