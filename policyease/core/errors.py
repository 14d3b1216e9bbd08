"""
Failure taxonomy of the analysis pipeline.

Every failure raised by the request composer, the generation client or the
response normalizer derives from `PolicyAnalysisError`. The lifecycle turns
any of them into a single ERROR transition; the HTTP layer maps them to status
codes. An out-of-range design priority is not an error: the normalizer
recovers it in place.
"""


class PolicyAnalysisError(Exception):
    """Base class for pipeline failures."""


class MissingCredential(PolicyAnalysisError):
    """The generation capability is not configured (no API key)."""


class TransportFailure(PolicyAnalysisError):
    """Network, quota or service-level failure reported by the generation capability."""


class MalformedOutput(PolicyAnalysisError):
    """
    The capability returned text that is not the expected JSON document.

    `raw_text` keeps the offending output for diagnostics. It is logged but
    never shown to end users.
    """

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text
