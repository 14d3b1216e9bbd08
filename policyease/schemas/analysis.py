from typing import Optional

from pydantic import BaseModel, Field

from policyease.agent.schemas.requests import OutputLanguage


class NameAnalysisRequest(BaseModel):
    name: str = Field(..., description="Name of the policy or regulation to look up")
    language: Optional[OutputLanguage] = Field(
        default=None, description="Output language, defaults to the configured language"
    )


class TextAnalysisRequest(BaseModel):
    text: str = Field(..., description="Pasted policy text")
    language: Optional[OutputLanguage] = Field(
        default=None, description="Output language, defaults to the configured language"
    )


class SessionCreate(BaseModel):
    language: Optional[OutputLanguage] = Field(
        default=None, description="Output language of every analysis in this session"
    )


class SessionCreated(BaseModel):
    session_id: str
    language: OutputLanguage


class SampleOut(BaseModel):
    policy_name: str


class NameSubmit(BaseModel):
    name: str = Field(..., description="Name of the policy or regulation to look up")


class TextSubmit(BaseModel):
    text: str = Field(..., description="Pasted policy text")
