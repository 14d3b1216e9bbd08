"""
Response Normalizer

Coerces the capability's raw output into the canonical `PolicyAnalysis`.

The declared output schema is only a hint to the capability, so everything is
checked again here:
- the text must parse as a JSON object, and every field the active schema
  variant marks as required must be present (else MalformedOutput);
- designPriority outside {high, medium, low, none} becomes none and the
  implication is dropped (recovered in place, logged, never an error);
- optional fields missing from the output get their fallbacks;
- grounding references become `sources`, deduplicated by URI (first wins),
  links that are not http(s) are dropped, an empty result leaves `sources` unset.

The result is all-or-nothing: any failure after parsing starts raises instead of
returning a partially populated model.
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from policyease.agent.schemas.analysis import DesignPriority, PolicyAnalysis
from policyease.agent.schemas.generation import GroundingReference, SchemaVariant
from policyease.agent.schema_builder import VARIANTS
from policyease.agent.schemas.requests import OutputLanguage
from policyease.core.errors import MalformedOutput
from policyease.i18n import t

logger = logging.getLogger(__name__)

_VALID_PRIORITIES = {p.value for p in DesignPriority}


# ---------- HELPERS ----------
def _parse_object(raw_text: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as e:
        raise MalformedOutput(f"Output is not valid JSON: {e}", raw_text=raw_text) from e
    if not isinstance(data, dict):
        raise MalformedOutput(
            f"Expected a JSON object, got {type(data).__name__}", raw_text=raw_text
        )
    return data


def _check_required(data: Dict[str, Any], variant: SchemaVariant, raw_text: str) -> None:
    _, required = VARIANTS[variant]
    missing = [name for name in required if data.get(name) is None]
    if missing:
        raise MalformedOutput(
            f"Missing required field(s) for {variant.value}: {', '.join(missing)}",
            raw_text=raw_text,
        )


def normalize_priority(value: Any) -> DesignPriority | None:
    """Map a raw priority token to the enum; None when it is out of range."""
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _VALID_PRIORITIES:
            return DesignPriority(token)
    return None


def _normalize_article(article: Any, index: int) -> Any:
    if not isinstance(article, dict):
        # left for model validation to reject
        return article
    article = dict(article)
    raw_priority = article.get("designPriority")
    priority = normalize_priority(raw_priority)
    if priority is None:
        if raw_priority is not None:
            logger.warning(
                f"⚠️ Article #{index} has out-of-range designPriority {raw_priority!r}; using 'none'"
            )
        priority = DesignPriority.NONE
    article["designPriority"] = priority.value
    if priority == DesignPriority.NONE:
        article.pop("systemDesignImplication", None)
    return article


def _snapshot_history(language: OutputLanguage) -> List[Dict[str, str]]:
    return [
        {
            "date": t(language, "snapshot.date"),
            "versionName": t(language, "snapshot.version_name"),
            "changeSummary": t(language, "snapshot.change_summary"),
        }
    ]


def _usable_uri(uri: Optional[str]) -> Optional[str]:
    if not isinstance(uri, str):
        return None
    uri = uri.strip()
    parsed = urlparse(uri)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return uri


def map_sources(references: Iterable[Any]) -> Optional[List[Dict[str, str]]]:
    """
    Grounding references -> `sources` entries.

    Accepts `GroundingReference` objects or plain {title, uri} dicts. Returns None
    (not an empty list) when nothing usable remains.
    """
    seen = set()
    sources: List[Dict[str, str]] = []
    for ref in references:
        if isinstance(ref, GroundingReference):
            title, uri = ref.title, ref.uri
        elif isinstance(ref, dict):
            title, uri = ref.get("title"), ref.get("uri")
        else:
            continue
        uri = _usable_uri(uri)
        if uri is None or uri in seen:
            continue
        seen.add(uri)
        if not isinstance(title, str) or not title.strip():
            title = urlparse(uri).netloc
        sources.append({"title": title.strip(), "uri": uri})
    return sources or None


# ---------- PUBLIC API ----------
def normalize(
    raw_text: str,
    variant: SchemaVariant,
    grounding_references: Optional[Iterable[GroundingReference]] = None,
    language: OutputLanguage = OutputLanguage.ZH,
) -> PolicyAnalysis:
    """
    Parse and validate raw capability output as a `PolicyAnalysis`.

    `sources` is built from `grounding_references` alone; a `sources` key in the
    output itself is dropped.

    Raises:
        MalformedOutput: unparseable JSON, a missing required field, or a
            structure that does not fit the canonical model.
    """
    data = _parse_object(raw_text)
    _check_required(data, variant, raw_text)

    if not isinstance(data["title"], str) or not data["title"].strip():
        raise MalformedOutput("Field 'title' is empty", raw_text=raw_text)

    if data.get("toneAndIntent") is None:
        data["toneAndIntent"] = ""

    history = data.get("history")
    if history is None or (isinstance(history, list) and not history):
        logger.info("No version history in output; using standalone snapshot entry")
        data["history"] = _snapshot_history(language)

    articles = data.get("articles")
    if articles is None:
        data["articles"] = []
    elif isinstance(articles, list):
        data["articles"] = [_normalize_article(a, i) for i, a in enumerate(articles)]

    # sources only ever come from grounding metadata, never from the generated text
    if data.pop("sources", None) is not None:
        logger.warning("⚠️ Discarding 'sources' written into the generated output")
    sources = map_sources(grounding_references or [])
    if sources is not None:
        data["sources"] = sources

    try:
        return PolicyAnalysis.model_validate(data)
    except ValidationError as e:
        raise MalformedOutput(
            f"Output does not match the analysis model: {e.error_count()} error(s)",
            raw_text=raw_text,
        ) from e
