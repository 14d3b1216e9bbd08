"""
Pydantic schemas describing what a caller asks for.

A request is a tagged variant over the three input modalities: by name
(web-search augmented), by raw text, and by uploaded document.
"""

from enum import StrEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class OutputLanguage(StrEnum):
    """Language every generated field value is written in."""

    ZH = "zh"
    EN = "en"


class Attachment(BaseModel):
    """An already-encoded document with its declared media type."""

    model_config = ConfigDict(frozen=True)

    mime_type: str = Field(description="Declared media type, e.g. application/pdf")
    data: bytes = Field(repr=False, description="Raw document bytes")
    filename: Optional[str] = Field(default=None, description="Original file name")

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/")


class ByName(BaseModel):
    """Analyze a policy identified only by its name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["name"] = "name"
    name: str

    def is_blank(self) -> bool:
        return not self.name.strip()


class ByText(BaseModel):
    """Analyze pasted policy text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    text: str

    def is_blank(self) -> bool:
        return not self.text.strip()


class ByDocument(BaseModel):
    """Analyze an uploaded document; the document is the only source of truth."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["document"] = "document"
    attachment: Optional[Attachment] = None

    def is_blank(self) -> bool:
        return self.attachment is None or not self.attachment.data


AnalysisRequest = Annotated[Union[ByName, ByText, ByDocument], Field(discriminator="kind")]
