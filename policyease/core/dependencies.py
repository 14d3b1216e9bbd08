from fastapi import HTTPException, Request, status

from policyease.core.config import CONFIG_ANALYSIS_SERVICE, CONFIG_SESSION_REPOSITORY
from policyease.repo.session_repo import SessionRepository
from policyease.services.analysis_service import PolicyAnalysisService


def get_analysis_service(request: Request) -> PolicyAnalysisService:

    analysis_service: PolicyAnalysisService = getattr(
        request.app.state, CONFIG_ANALYSIS_SERVICE, None
    )
    if analysis_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Analysis service not initialized",
        )
    return analysis_service


def get_session_repository(request: Request) -> SessionRepository:

    sessions: SessionRepository = getattr(request.app.state, CONFIG_SESSION_REPOSITORY, None)
    if sessions is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Session repository not initialized",
        )
    return sessions
