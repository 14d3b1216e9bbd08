"""
Schemas exchanged with the generation capability.

The capability contract is:
    generate(GenerationRequest) -> GenerationResult
where the result carries the raw JSON text and, for search-augmented
requests, the grounding references the service reported.
"""

from enum import StrEnum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from policyease.agent.schemas.requests import Attachment


class SchemaVariant(StrEnum):
    BY_NAME = "by_name"
    BY_TEXT = "by_text"
    BY_DOCUMENT = "by_document"


class SchemaDescriptor(BaseModel):
    """A JSON Schema handed to the capability plus the fields the normalizer relies on."""

    model_config = ConfigDict(frozen=True)

    name: str
    variant: SchemaVariant
    json_schema: dict[str, Any]
    required: tuple[str, ...]


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    instruction: str
    schema_descriptor: SchemaDescriptor
    attachment: Optional[Attachment] = None
    search_augmented: bool = False


class GroundingReference(BaseModel):
    """A web source the capability consulted. Either field may be missing."""

    title: Optional[str] = None
    uri: Optional[str] = None


class GenerationResult(BaseModel):
    text: str = ""
    grounding_references: List[GroundingReference] = Field(default_factory=list)
