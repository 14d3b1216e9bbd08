"""
Schema Builder

Declares the JSON shape the generation capability must produce. One field table
is shared by all request variants; a variant only selects which top-level
fields it asks for and which of them are required.

The schema is a hint to the capability. The response normalizer validates the
parsed output again and is the sole authority on what reaches the UI, so the
`required` list here is the minimal set the normalizer relies on. Every other
field has a fallback there.
"""

import copy
from typing import Any, Dict, Tuple

from policyease.agent.schemas.analysis import DesignPriority
from policyease.agent.schemas.generation import SchemaDescriptor, SchemaVariant


def _string(description: str | None = None) -> Dict[str, Any]:
    field: Dict[str, Any] = {"type": "string"}
    if description:
        field["description"] = description
    return field


def _object(properties: Dict[str, Any], required: Tuple[str, ...]) -> Dict[str, Any]:
    return {"type": "object", "properties": properties, "required": list(required)}


def _array(items: Dict[str, Any], description: str | None = None) -> Dict[str, Any]:
    field: Dict[str, Any] = {"type": "array", "items": items}
    if description:
        field["description"] = description
    return field


DESIGN_PRIORITY_VALUES = [p.value for p in DesignPriority]

# ---------- FIELD TABLE ----------
FIELDS: Dict[str, Dict[str, Any]] = {
    "title": _string("The full official title of the policy"),
    "toneAndIntent": _string("One paragraph on the strictness and purpose of the policy"),
    "summaryTldr": _string("A 2-3 sentence executive summary of the latest version"),
    "history": _array(
        _object(
            {
                "date": _string(
                    "Effective or publication date as free text, ISO 8601 preferred"
                ),
                "versionName": _string("Name or label of this version"),
                "changeSummary": _string("What changed compared to the previous version"),
            },
            ("date", "versionName", "changeSummary"),
        ),
        "Version timeline, earliest first",
    ),
    "coreConcepts": _array(
        _object(
            {
                "term": _string(),
                "definition": _string("Plain-language definition of the term"),
            },
            ("term", "definition"),
        )
    ),
    "articles": _array(
        _object(
            {
                "chapter": _string("Chapter or section heading the article belongs to"),
                "articleNumber": _string("Article or clause number as written in the source"),
                "content": _string("The article text or a faithful condensation of it"),
                "systemDesignImplication": _string(
                    "What a software system must implement or change to comply. "
                    "Omit when designPriority is none"
                ),
                "designPriority": {
                    "type": "string",
                    "enum": DESIGN_PRIORITY_VALUES,
                    "description": (
                        "Exactly one of high, medium, low, none. No other value is allowed. "
                        "Use none when the article has no system design impact"
                    ),
                },
            },
            ("articleNumber", "content", "designPriority"),
        ),
        "One entry per article or clause, in document order",
    ),
    "flashcards": _array(
        _object(
            {
                "question": _string("A specific question about the policy"),
                "answer": _string("The direct answer"),
            },
            ("question", "answer"),
        )
    ),
    "eli5Explanation": _string(
        "A simplified explanation using analogies, as if explaining to a 12-year-old"
    ),
    "actionItems": _array(
        _object(
            {
                "who": _string("Who is responsible or affected"),
                "what": _string("What they must do or avoid"),
                "deadline": _string("Timeframe if mentioned, otherwise 'Ongoing'"),
            },
            ("who", "what"),
        )
    ),
    "mnemonicDevice": _object(
        {
            "phrase": _string("An acronym or rhyme to remember the main points"),
            "explanation": _string("How to use this mnemonic"),
        },
        ("phrase", "explanation"),
    ),
}

# ---------- VARIANTS ----------
# (requested fields, required fields)
_STRUCTURED_FIELDS = (
    "title",
    "toneAndIntent",
    "summaryTldr",
    "history",
    "coreConcepts",
    "articles",
    "flashcards",
)
_STRUCTURED_REQUIRED = (
    "title",
    "summaryTldr",
    "coreConcepts",
    "history",
    "articles",
    "flashcards",
)

VARIANTS: Dict[SchemaVariant, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    SchemaVariant.BY_NAME: (_STRUCTURED_FIELDS, _STRUCTURED_REQUIRED),
    SchemaVariant.BY_DOCUMENT: (_STRUCTURED_FIELDS, _STRUCTURED_REQUIRED),
    SchemaVariant.BY_TEXT: (
        (
            "title",
            "toneAndIntent",
            "summaryTldr",
            "eli5Explanation",
            "history",
            "coreConcepts",
            "actionItems",
            "mnemonicDevice",
            "flashcards",
        ),
        (
            "title",
            "summaryTldr",
            "eli5Explanation",
            "coreConcepts",
            "mnemonicDevice",
            "flashcards",
        ),
    ),
}


def build_schema(variant: SchemaVariant) -> SchemaDescriptor:
    """Build the output schema for one request variant."""
    fields, required = VARIANTS[variant]
    json_schema = _object({name: copy.deepcopy(FIELDS[name]) for name in fields}, required)
    return SchemaDescriptor(
        name=f"policy_analysis_{variant.value}",
        variant=variant,
        json_schema=json_schema,
        required=required,
    )
