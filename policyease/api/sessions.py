"""
Session endpoints: an HTTP face for the analysis lifecycle.

A session owns one AnalysisLifecycle. Submitting awaits the analysis and returns
the terminal snapshot; GET returns the current snapshot at any time (ANALYZING
while a request is in flight). A second submission while ANALYZING is refused
with 409.
"""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from policyease.api.uploads import read_attachment
from policyease.core.config import Settings, get_settings
from policyease.core.dependencies import get_session_repository
from policyease.repo.session_repo import SessionRepository
from policyease.schemas.analysis import NameSubmit, SessionCreate, SessionCreated, TextSubmit
from policyease.services.lifecycle import AnalysisLifecycle, LifecycleSnapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_lifecycle(session_id: str, sessions: SessionRepository) -> AnalysisLifecycle:
    lifecycle = sessions.get(session_id)
    if lifecycle is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return lifecycle


def _ensure_idle_slot(lifecycle: AnalysisLifecycle) -> None:
    if lifecycle.is_busy:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="An analysis is already in progress"
        )


def _require_text(value: str, field: str) -> None:
    if not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"'{field}' must not be empty"
        )


@router.post("", summary="Create an analysis session", response_model=SessionCreated)
async def create_session(
    body: SessionCreate | None = None,
    settings: Settings = Depends(get_settings),
    sessions: SessionRepository = Depends(get_session_repository),
):
    language = (body.language if body else None) or settings.DEFAULT_LANGUAGE
    session_id, _ = sessions.create(language)
    return SessionCreated(session_id=session_id, language=language)


@router.get(
    "/{session_id}",
    summary="Current lifecycle snapshot",
    response_model=LifecycleSnapshot,
    response_model_exclude_none=True,
)
async def get_session(
    session_id: str, sessions: SessionRepository = Depends(get_session_repository)
):
    return _get_lifecycle(session_id, sessions).snapshot()


@router.delete("/{session_id}", summary="Delete a session", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(
    session_id: str, sessions: SessionRepository = Depends(get_session_repository)
):
    if not sessions.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")


@router.post(
    "/{session_id}/name",
    summary="Submit a policy name",
    response_model=LifecycleSnapshot,
    response_model_exclude_none=True,
)
async def submit_name(
    session_id: str,
    body: NameSubmit,
    sessions: SessionRepository = Depends(get_session_repository),
):
    lifecycle = _get_lifecycle(session_id, sessions)
    name = body.name
    _require_text(name, "name")
    _ensure_idle_slot(lifecycle)
    if not await lifecycle.submit_name(name):
        _ensure_idle_slot(lifecycle)
    return lifecycle.snapshot()


@router.post(
    "/{session_id}/text",
    summary="Submit pasted policy text",
    response_model=LifecycleSnapshot,
    response_model_exclude_none=True,
)
async def submit_text(
    session_id: str,
    body: TextSubmit,
    sessions: SessionRepository = Depends(get_session_repository),
):
    lifecycle = _get_lifecycle(session_id, sessions)
    text = body.text
    _require_text(text, "text")
    _ensure_idle_slot(lifecycle)
    if not await lifecycle.submit_text(text):
        _ensure_idle_slot(lifecycle)
    return lifecycle.snapshot()


@router.post(
    "/{session_id}/document",
    summary="Submit a policy document",
    response_model=LifecycleSnapshot,
    response_model_exclude_none=True,
)
async def submit_document(
    session_id: str,
    file: UploadFile = File(...),
    settings: Settings = Depends(get_settings),
    sessions: SessionRepository = Depends(get_session_repository),
):
    lifecycle = _get_lifecycle(session_id, sessions)
    _ensure_idle_slot(lifecycle)
    attachment = await read_attachment(file, settings.MAX_UPLOAD_BYTES)
    # another submission may have started while the upload was being read
    if not await lifecycle.submit_document(attachment):
        _ensure_idle_slot(lifecycle)
    return lifecycle.snapshot()


@router.post(
    "/{session_id}/reset",
    summary="Reset the session to idle",
    response_model=LifecycleSnapshot,
    response_model_exclude_none=True,
)
async def reset_session(
    session_id: str, sessions: SessionRepository = Depends(get_session_repository)
):
    lifecycle = _get_lifecycle(session_id, sessions)
    lifecycle.reset()
    logger.info(f"Session {session_id} reset")
    return lifecycle.snapshot()
