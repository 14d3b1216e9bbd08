"""
Canonical data model of a policy analysis.

Every request modality converges on `PolicyAnalysis`. Models are frozen: the
normalizer builds one atomically and presentation code only reads it.
Attributes are snake_case; the wire format (what the model is asked to
produce and what the UI receives) is camelCase.
"""

from collections import Counter
from enum import StrEnum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, computed_field, model_validator
from pydantic.alias_generators import to_camel


class DesignPriority(StrEnum):
    """How urgently a clause requires software-system changes to comply."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class AnalysisStatus(StrEnum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    SUCCESS = "success"
    ERROR = "error"


class WireModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class HistoryVersion(WireModel):
    date: str  # free-form, never parsed
    version_name: str
    change_summary: str


class CoreConcept(WireModel):
    term: str
    definition: str


class Flashcard(WireModel):
    question: str
    answer: str


class Source(WireModel):
    title: str
    uri: str


class ActionItem(WireModel):
    who: str
    what: str
    deadline: Optional[str] = None


class MnemonicDevice(WireModel):
    phrase: str
    explanation: str


class PolicyArticle(WireModel):
    chapter: Optional[str] = None
    article_number: str
    content: str
    system_design_implication: Optional[str] = None
    design_priority: DesignPriority = DesignPriority.NONE

    @model_validator(mode="before")
    @classmethod
    def _drop_irrelevant_implication(cls, data: Any) -> Any:
        """A `none` priority never carries an implication; blank implications are absent."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        priority_key = "designPriority" if "designPriority" in data else "design_priority"
        implication_key = (
            "systemDesignImplication"
            if "systemDesignImplication" in data
            else "system_design_implication"
        )
        implication = data.get(implication_key)
        priority = data.get(priority_key, DesignPriority.NONE)
        if priority == DesignPriority.NONE or (
            isinstance(implication, str) and not implication.strip()
        ):
            data.pop(implication_key, None)
        return data

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_design_implication(self) -> bool:
        return self.design_priority != DesignPriority.NONE and bool(
            self.system_design_implication
        )


class PolicyAnalysis(WireModel):
    """Root result shown by the UI."""

    title: str
    tone_and_intent: str = ""
    history: Tuple[HistoryVersion, ...]
    summary_tldr: str
    core_concepts: Tuple[CoreConcept, ...]
    articles: Tuple[PolicyArticle, ...] = ()
    flashcards: Tuple[Flashcard, ...]
    sources: Optional[Tuple[Source, ...]] = None

    # Only produced by the simple pasted-text variant
    eli5_explanation: Optional[str] = None
    action_items: Optional[Tuple[ActionItem, ...]] = None
    mnemonic_device: Optional[MnemonicDevice] = None

    @property
    def design_articles(self) -> Tuple[PolicyArticle, ...]:
        """Articles flagged for system design, in the order they were extracted."""
        return tuple(a for a in self.articles if a.has_design_implication)

    def priority_counts(self) -> dict[DesignPriority, int]:
        counts = Counter(a.design_priority for a in self.articles)
        return {priority: counts.get(priority, 0) for priority in DesignPriority}

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready camelCase dict; absent optional fields are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
