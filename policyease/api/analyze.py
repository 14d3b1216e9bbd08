import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from policyease.api.uploads import read_attachment
from policyease.core.config import Settings, get_settings
from policyease.core.dependencies import get_analysis_service
from policyease.agent.schemas.analysis import PolicyAnalysis
from policyease.agent.schemas.requests import OutputLanguage
from policyease.i18n import SAMPLE_POLICY_NAME
from policyease.schemas.analysis import NameAnalysisRequest, SampleOut, TextAnalysisRequest
from policyease.services.analysis_service import PolicyAnalysisService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analyze"])


def _require_text(value: str, field: str) -> None:
    if not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"'{field}' must not be empty"
        )


@router.post(
    "/name",
    summary="Analyze a policy by name (web search)",
    response_model=PolicyAnalysis,
    response_model_exclude_none=True,
)
async def analyze_by_name(
    request: NameAnalysisRequest,
    analysis_service: PolicyAnalysisService = Depends(get_analysis_service),
):
    _require_text(request.name, "name")
    logger.info(f"Received name analysis request: {request.name!r}")
    return await analysis_service.analyze_by_name(request.name, request.language)


@router.post(
    "/text",
    summary="Analyze pasted policy text",
    response_model=PolicyAnalysis,
    response_model_exclude_none=True,
)
async def analyze_by_text(
    request: TextAnalysisRequest,
    analysis_service: PolicyAnalysisService = Depends(get_analysis_service),
):
    _require_text(request.text, "text")
    logger.info(f"Received text analysis request ({len(request.text)} chars)")
    return await analysis_service.analyze_by_text(request.text, request.language)


@router.post(
    "/document",
    summary="Analyze an uploaded policy document (pdf, txt, md)",
    response_model=PolicyAnalysis,
    response_model_exclude_none=True,
)
async def analyze_document(
    file: UploadFile = File(...),
    language: Optional[OutputLanguage] = Form(default=None),
    settings: Settings = Depends(get_settings),
    analysis_service: PolicyAnalysisService = Depends(get_analysis_service),
):
    attachment = await read_attachment(file, settings.MAX_UPLOAD_BYTES)
    logger.info(f"Received document analysis request: {attachment.filename}")
    return await analysis_service.analyze_document(attachment, language)


@router.get("/samples", summary="Sample policy name", response_model=SampleOut)
async def sample_policy():
    return SampleOut(policy_name=SAMPLE_POLICY_NAME)
