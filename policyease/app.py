import logging

from fastapi import APIRouter, FastAPI, Request, status
from fastapi.concurrency import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi.params import Depends
from fastapi.responses import JSONResponse

from policyease.api import analyze, sessions
from policyease.core.config import (
    CONFIG_ANALYSIS_SERVICE,
    CONFIG_SESSION_REPOSITORY,
    Settings,
    get_settings,
)
from policyease.core.errors import (
    MalformedOutput,
    MissingCredential,
    PolicyAnalysisError,
    TransportFailure,
)
from policyease.repo.session_repo import SessionRepository
from policyease.services.analysis_service import PolicyAnalysisService

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_STATUS = {
    MissingCredential: status.HTTP_503_SERVICE_UNAVAILABLE,
    TransportFailure: status.HTTP_502_BAD_GATEWAY,
    MalformedOutput: status.HTTP_502_BAD_GATEWAY,
}


@router.get("/health", summary="Health Check")
async def health_check():
    """Health check endpoint to verify if the application is running."""
    return {"status": "ok", "message": "Application is running"}


@router.get("/config", summary="Configuration")
async def get_config(s: Settings = Depends(get_settings)):
    """Get the non-secret application configuration."""
    return s.public_view()


async def handle_analysis_error(request: Request, exc: PolicyAnalysisError) -> JSONResponse:
    # raw model output stays in the logs, never in the response body
    code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=code,
        content={"detail": "Policy analysis failed", "error": exc.__class__.__name__},
    )


def create_app(
    settings: Settings | None = None,
    analysis_service: PolicyAnalysisService | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan event handler."""
        logger.info("Starting application...")

        service = analysis_service or PolicyAnalysisService.from_settings(settings)
        setattr(app.state, CONFIG_ANALYSIS_SERVICE, service)
        sessions = SessionRepository(
            service,
            max_sessions=settings.MAX_SESSIONS,
            idle_ttl_seconds=settings.SESSION_IDLE_TTL_SECONDS,
        )
        setattr(app.state, CONFIG_SESSION_REPOSITORY, sessions)

        if not settings.OPENAI_API_KEY and analysis_service is None:
            logger.warning("❌ OPENAI_API_KEY not set, analyses will fail until it is configured")

        logger.info("Application started")
        yield

        logger.info("Application stopped")

    app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PolicyAnalysisError, handle_analysis_error)

    # Setup routers
    routers = [router, analyze.router, sessions.router]
    for r in routers:
        app.include_router(r)

    return app
