"""
Generation capability backed by the OpenAI Agents SDK.

Contract (what the rest of the pipeline sees):
    await client.generate(GenerationRequest) -> GenerationResult(text, grounding_references)

The agent is built per request from the composed instruction and schema:
- output_type is a custom AgentOutputSchemaBase that hands the built JSON Schema
  to the model and returns the raw text untouched, so validation stays in the
  response normalizer;
- search-augmented requests get the hosted WebSearchTool; url_citation
  annotations on the final message become grounding references;
- PDF attachments are sent as input_file data URLs, text/markdown attachments
  are decoded and sent inline.

Failures are reported through the pipeline's taxonomy: MissingCredential when no
API key is configured, TransportFailure for anything the SDK or the API raises.
No retries are attempted (max_retries=0 on the client).
"""

import base64
import logging
from typing import Any, Dict, List, Optional, Protocol

from agents import (
    Agent,
    AgentOutputSchemaBase,
    AgentsException,
    MessageOutputItem,
    OpenAIResponsesModel,
    RunConfig,
    Runner,
    WebSearchTool,
)
from openai import APIError, AsyncOpenAI

from policyease.agent.schemas.generation import (
    GenerationRequest,
    GenerationResult,
    GroundingReference,
    SchemaDescriptor,
)
from policyease.agent.schemas.requests import Attachment
from policyease.core.config import Settings
from policyease.core.errors import MissingCredential, TransportFailure

logger = logging.getLogger(__name__)


class GenerationClient(Protocol):
    async def generate(self, request: GenerationRequest) -> GenerationResult: ...


class RawJsonOutputSchema(AgentOutputSchemaBase):
    """Constrains the model with a prebuilt JSON Schema and returns the raw text."""

    def __init__(self, descriptor: SchemaDescriptor):
        self._descriptor = descriptor

    def is_plain_text(self) -> bool:
        return False

    def name(self) -> str:
        return self._descriptor.name

    def json_schema(self) -> dict[str, Any]:
        return self._descriptor.json_schema

    def is_strict_json_schema(self) -> bool:
        # optional fields are allowed, strict mode would force every property
        return False

    def validate_json(self, json_str: str) -> Any:
        return json_str


# ---------- INPUT BUILDING ----------
def _attachment_parts(attachment: Attachment) -> List[Dict[str, Any]]:
    if attachment.is_text:
        text = attachment.data.decode("utf-8", errors="replace")
        label = attachment.filename or "document"
        return [{"type": "input_text", "text": f"<<<DOCUMENT {label}\n{text}\nDOCUMENT>>>"}]
    encoded = base64.b64encode(attachment.data).decode("ascii")
    return [
        {
            "type": "input_file",
            "filename": attachment.filename or "document.pdf",
            "file_data": f"data:{attachment.mime_type};base64,{encoded}",
        }
    ]


def build_input(request: GenerationRequest) -> str | List[Dict[str, Any]]:
    """Plain string for text-only requests, a single user message with parts otherwise."""
    if request.attachment is None:
        return request.instruction
    content = _attachment_parts(request.attachment)
    content.append({"type": "input_text", "text": request.instruction})
    return [{"role": "user", "content": content}]


def extract_grounding_references(items: List[Any]) -> List[GroundingReference]:
    """Collect url_citation annotations from the message outputs of a run."""
    references: List[GroundingReference] = []
    for item in items:
        if not isinstance(item, MessageOutputItem):
            continue
        for part in getattr(item.raw_item, "content", None) or []:
            for annotation in getattr(part, "annotations", None) or []:
                if getattr(annotation, "type", None) != "url_citation":
                    continue
                references.append(
                    GroundingReference(
                        title=getattr(annotation, "title", None),
                        uri=getattr(annotation, "url", None),
                    )
                )
    return references


# ---------- CLIENT ----------
class OpenAIGenerationClient:
    """GenerationClient implementation over the Agents SDK and an AsyncOpenAI client."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-5-mini",
        timeout: float = 120.0,
        tracing_disabled: bool = True,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.tracing_disabled = tracing_disabled
        self._openai_client: Optional[AsyncOpenAI] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIGenerationClient":
        return cls(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
            tracing_disabled=settings.OPENAI_TRACING_DISABLED,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> AsyncOpenAI:
        if not self.is_configured:
            raise MissingCredential("OPENAI_API_KEY is not configured")
        if self._openai_client is None:
            self._openai_client = AsyncOpenAI(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._openai_client

    def create_agent(self, request: GenerationRequest) -> Agent:
        return Agent(
            name="Policy Analysis Agent",
            instructions=(
                "You analyze policies and regulations and answer with a single JSON "
                "object that follows the provided schema."
            ),
            tools=[WebSearchTool()] if request.search_augmented else [],
            output_type=RawJsonOutputSchema(request.schema_descriptor),
            model=OpenAIResponsesModel(model=self.model, openai_client=self._client()),
        )

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        agent = self.create_agent(request)
        logger.info(
            f"🚀 Generating {request.schema_descriptor.name} "
            f"(search={request.search_augmented}, attachment={request.attachment is not None})"
        )
        try:
            res = await Runner.run(
                agent,
                build_input(request),
                run_config=RunConfig(
                    workflow_name="PolicyEase analysis",
                    tracing_disabled=self.tracing_disabled,
                ),
            )
        except (APIError, AgentsException) as e:
            logger.error(f"❌ Generation failed: {e.__class__.__name__}: {e}")
            raise TransportFailure(str(e)) from e

        text = res.final_output if isinstance(res.final_output, str) else ""
        references = extract_grounding_references(res.new_items)
        logger.info(f"✅ Generation finished ({len(text)} chars, {len(references)} citations)")
        return GenerationResult(text=text, grounding_references=references)
