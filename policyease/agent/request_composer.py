"""
Request Composer

Turns an `AnalysisRequest` (by name / by text / by document) and an output
language into the `GenerationRequest` sent to the generation capability.

ONE COMPOSER, THREE MODALITIES
------------------------------
- ByName:     instruction asks the capability to search the web for the official
              text, preferring authoritative government domains.
              search_augmented=True, BY_NAME schema.
- ByText:     the pasted text is embedded in the instruction between markers.
              search_augmented=False, BY_TEXT (simple) schema.
- ByDocument: the attachment travels next to the instruction and is declared the
              sole source of truth. search_augmented=False, BY_DOCUMENT schema.

Pasted text and documents carry no external history, so the instruction asks for
the source's own revision history or, failing that, exactly one snapshot entry.

The composer is a pure function of its inputs.
"""

from typing import Sequence

from policyease.agent.schema_builder import build_schema
from policyease.agent.schemas.generation import GenerationRequest, SchemaVariant
from policyease.agent.schemas.requests import (
    AnalysisRequest,
    ByDocument,
    ByName,
    ByText,
    OutputLanguage,
)
from policyease.i18n import t

# ---------- PROMPTS ----------
BY_NAME_PROMPT = """
You are a policy and regulation expert helping product managers and system designers.

1. Search for the official full text and authoritative interpretations of the policy/regulation named: "{{policy_name}}".
   Prefer official government sources ({{preferred_domains}}) over secondary commentary.
2. Base the analysis on the latest effective version found via search.
3. Produce:
   - the full official title;
   - a short characterisation of its tone and intent (how strict, what it aims at);
   - a 2-3 sentence summary;
   - the version history, earliest first (free-text dates, ISO 8601 where known);
   - the key concepts with plain-language definitions;
   - one entry per article/clause with its chapter, number, content, the system design
     implication for a software product, and a designPriority;
   - flashcards for self-study.
{{common_rules}}
""".strip()

BY_TEXT_PROMPT = """
You are a policy and regulation expert explaining a policy to a general audience.

Analyze ONLY the policy text between the markers below. Do not search the web and do
not bring in facts the text does not support.

<<<POLICY_TEXT
{{policy_text}}
POLICY_TEXT>>>

Produce:
   - the title of the policy (infer a descriptive one if the text has none);
   - a short characterisation of its tone and intent;
   - a 2-3 sentence summary;
   - a simplified explanation using analogies, as if explaining to a 12-year-old;
   - the version history;
   - the key concepts with plain-language definitions;
   - action items: who is affected, what they must do or avoid, and the deadline
     (use "Ongoing" when none is given);
   - a mnemonic device (an acronym or rhyme) and how to use it;
   - flashcards for self-study.
{{history_rule}}
{{common_rules}}
""".strip()

BY_DOCUMENT_PROMPT = """
You are a policy and regulation expert helping product managers and system designers.

The attached document is the SOLE source of truth. Do not search the web and do not
bring in facts the document does not support.

Produce:
   - the full official title as written in the document;
   - a short characterisation of its tone and intent (how strict, what it aims at);
   - a 2-3 sentence summary;
   - the version history;
   - the key concepts with plain-language definitions;
   - one entry per article/clause with its chapter, number, content, the system design
     implication for a software product, and a designPriority;
   - flashcards for self-study.
{{history_rule}}
{{common_rules}}
""".strip()

HISTORY_RULE = """
VERSION HISTORY RULE:
- If the source references its own revisions or amendments, list them earliest first.
- Otherwise return exactly ONE history entry describing a standalone snapshot:
  {"date": "{{snapshot_date}}", "versionName": "{{snapshot_version}}", "changeSummary": "{{snapshot_summary}}"}
- Never return an empty history.
""".strip()

COMMON_RULES = """
DESIGN PRIORITY RULE:
- designPriority must be exactly one of: high, medium, low, none. No other value.
- high: the product cannot launch or keep operating compliantly without a system change.
- medium: a system change is expected but can be scheduled.
- low: minor or documentation-level impact.
- none: no system design impact; omit systemDesignImplication in that case.

OUTPUT RULES:
- Write EVERY textual field value in {{language_name}} ({{language_code}}), including
  titles, summaries, definitions, history entries and flashcards.
- Return ONLY a JSON object that matches the provided schema. No markdown, no commentary.
""".strip()


def _common_rules(language: OutputLanguage) -> str:
    return (
        COMMON_RULES.replace("{{language_name}}", t(language, "language.name"))
        .replace("{{language_code}}", OutputLanguage(language).value)
    )


def _history_rule(language: OutputLanguage) -> str:
    return (
        HISTORY_RULE.replace("{{snapshot_date}}", t(language, "snapshot.date"))
        .replace("{{snapshot_version}}", t(language, "snapshot.version_name"))
        .replace("{{snapshot_summary}}", t(language, "snapshot.change_summary"))
    )


def compose_by_name(
    request: ByName, language: OutputLanguage, preferred_domains: Sequence[str]
) -> GenerationRequest:
    domains = ", ".join(preferred_domains) if preferred_domains else "official government websites"
    instruction = (
        BY_NAME_PROMPT.replace("{{preferred_domains}}", domains)
        .replace("{{common_rules}}", _common_rules(language))
        .replace("{{policy_name}}", request.name.strip())
    )
    return GenerationRequest(
        instruction=instruction,
        schema_descriptor=build_schema(SchemaVariant.BY_NAME),
        search_augmented=True,
    )


def compose_by_text(request: ByText, language: OutputLanguage) -> GenerationRequest:
    instruction = (
        BY_TEXT_PROMPT.replace("{{history_rule}}", _history_rule(language))
        .replace("{{common_rules}}", _common_rules(language))
        # substituted last so placeholders inside user text are never expanded
        .replace("{{policy_text}}", request.text.strip())
    )
    return GenerationRequest(
        instruction=instruction,
        schema_descriptor=build_schema(SchemaVariant.BY_TEXT),
        search_augmented=False,
    )


def compose_by_document(request: ByDocument, language: OutputLanguage) -> GenerationRequest:
    if request.attachment is None:
        raise ValueError("Document request without an attachment")
    instruction = (
        BY_DOCUMENT_PROMPT.replace("{{history_rule}}", _history_rule(language))
        .replace("{{common_rules}}", _common_rules(language))
    )
    return GenerationRequest(
        instruction=instruction,
        schema_descriptor=build_schema(SchemaVariant.BY_DOCUMENT),
        attachment=request.attachment,
        search_augmented=False,
    )


def compose(
    request: AnalysisRequest,
    language: OutputLanguage,
    preferred_domains: Sequence[str] = ("gov.cn",),
) -> GenerationRequest:
    """Build the generation request for any modality."""
    if isinstance(request, ByName):
        return compose_by_name(request, language, preferred_domains)
    if isinstance(request, ByText):
        return compose_by_text(request, language)
    if isinstance(request, ByDocument):
        return compose_by_document(request, language)
    raise TypeError(f"Unsupported analysis request: {type(request).__name__}")
