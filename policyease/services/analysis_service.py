import logging
from typing import Optional, Sequence

from policyease.agent.generation_agent import GenerationClient, OpenAIGenerationClient
from policyease.agent.request_composer import compose
from policyease.agent.response_normalizer import normalize
from policyease.agent.schemas.analysis import PolicyAnalysis
from policyease.agent.schemas.requests import (
    AnalysisRequest,
    Attachment,
    ByDocument,
    ByName,
    ByText,
    OutputLanguage,
)
from policyease.core.config import Settings
from policyease.core.errors import MalformedOutput, MissingCredential, TransportFailure

logger = logging.getLogger(__name__)


class PolicyAnalysisService:
    """
    Outbound API of the pipeline: compose -> generate -> normalize.

    Stateless apart from its collaborators, so one instance can serve any
    number of lifecycles and concurrent requests.
    """

    def __init__(
        self,
        client: GenerationClient,
        default_language: OutputLanguage = OutputLanguage.ZH,
        preferred_domains: Sequence[str] = ("gov.cn",),
    ):
        self.client = client
        self.default_language = default_language
        self.preferred_domains = tuple(preferred_domains)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PolicyAnalysisService":
        return cls(
            client=OpenAIGenerationClient.from_settings(settings),
            default_language=settings.DEFAULT_LANGUAGE,
            preferred_domains=settings.PREFERRED_SOURCE_DOMAINS,
        )

    async def analyze(
        self, request: AnalysisRequest, language: Optional[OutputLanguage] = None
    ) -> PolicyAnalysis:
        language = OutputLanguage(language or self.default_language)
        generation_request = compose(request, language, self.preferred_domains)
        variant = generation_request.schema_descriptor.variant

        logger.info(f"Analyzing {request.kind} request ({variant.value}, {language.value})")
        try:
            result = await self.client.generate(generation_request)
            analysis = normalize(
                result.text,
                variant,
                result.grounding_references if generation_request.search_augmented else None,
                language,
            )
        except MissingCredential:
            logger.error("❌ Generation capability is not configured")
            raise
        except MalformedOutput as e:
            logger.error(f"❌ Malformed output for {variant.value}: {e}\nRaw output:\n{e.raw_text}")
            raise
        except TransportFailure as e:
            logger.error(f"❌ Transport failure for {variant.value}: {e}")
            raise

        logger.info(
            f"✅ Analysis ready: '{analysis.title}' "
            f"({len(analysis.articles)} articles, {len(analysis.sources or ())} sources)"
        )
        return analysis

    async def analyze_by_name(
        self, name: str, language: Optional[OutputLanguage] = None
    ) -> PolicyAnalysis:
        """Search-augmented analysis of a policy known only by its name."""
        return await self.analyze(ByName(name=name), language)

    async def analyze_by_text(
        self, text: str, language: Optional[OutputLanguage] = None
    ) -> PolicyAnalysis:
        """Analysis of pasted text with the simple (ELI5 / action items / mnemonic) schema."""
        return await self.analyze(ByText(text=text), language)

    async def analyze_document(
        self, attachment: Attachment, language: Optional[OutputLanguage] = None
    ) -> PolicyAnalysis:
        """Analysis of an uploaded document, which is the only source consulted."""
        return await self.analyze(ByDocument(attachment=attachment), language)
