r"""
Analysis Lifecycle State Machine

    IDLE --submit(non-empty)--> ANALYZING --ok--> SUCCESS
                                     \----fail--> ERROR
    any state --reset()--> IDLE
    SUCCESS / ERROR --submit--> ANALYZING

Side effects of the transitions:
- entering ANALYZING clears the held result and error message immediately;
- entering ERROR clears the held result;
- entering SUCCESS clears the error message;
- reset() clears input, result and error message together.

At most one request is in flight: submitting while ANALYZING is rejected.
Each submission gets a sequence number. A response that arrives after a reset
(or after any newer submission) is stale and is dropped.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from policyease.agent.schemas.analysis import AnalysisStatus, PolicyAnalysis
from policyease.agent.schemas.requests import (
    AnalysisRequest,
    Attachment,
    ByDocument,
    ByName,
    ByText,
    OutputLanguage,
)
from policyease.core.errors import MissingCredential, PolicyAnalysisError
from policyease.i18n import t
from policyease.services.analysis_service import PolicyAnalysisService

logger = logging.getLogger(__name__)


class LifecycleSnapshot(BaseModel):
    """Read-only view of a lifecycle for presentation code."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    status: AnalysisStatus
    sequence: int
    language: OutputLanguage
    input_kind: Optional[str] = None
    result: Optional[PolicyAnalysis] = None
    error_message: Optional[str] = None


Listener = Callable[[LifecycleSnapshot], None]


class AnalysisLifecycle:

    def __init__(
        self,
        service: PolicyAnalysisService,
        language: OutputLanguage = OutputLanguage.ZH,
    ):
        self._service = service
        self.language = OutputLanguage(language)
        self._status = AnalysisStatus.IDLE
        self._input: Optional[AnalysisRequest] = None
        self._result: Optional[PolicyAnalysis] = None
        self._error_message: Optional[str] = None
        self._sequence = 0
        self._listeners: List[Listener] = []

    # ---------- observable state ----------
    @property
    def status(self) -> AnalysisStatus:
        return self._status

    @property
    def result(self) -> Optional[PolicyAnalysis]:
        return self._result

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def current_input(self) -> Optional[AnalysisRequest]:
        return self._input

    @property
    def sequence(self) -> int:
        return self._sequence

    @property
    def is_busy(self) -> bool:
        return self._status == AnalysisStatus.ANALYZING

    def snapshot(self) -> LifecycleSnapshot:
        return LifecycleSnapshot(
            status=self._status,
            sequence=self._sequence,
            language=self.language,
            input_kind=self._input.kind if self._input is not None else None,
            result=self._result,
            error_message=self._error_message,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every transition."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, status: AnalysisStatus) -> None:
        logger.debug(f"Lifecycle #{self._sequence}: {self._status.value} -> {status.value}")
        self._status = status
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Lifecycle listener failed on {status.value}")

    def _is_current(self, sequence: int) -> bool:
        return sequence == self._sequence and self._status == AnalysisStatus.ANALYZING

    # ---------- transitions ----------
    async def submit(self, request: AnalysisRequest) -> bool:
        """
        Run one analysis. Returns False when the submission was ignored (blank
        input, or a request is already in flight), True once it reached a
        terminal state or was superseded.
        """
        if request.is_blank():
            logger.info(f"Ignoring blank {request.kind} submission")
            return False
        if self.is_busy:
            logger.warning("Ignoring submission while another analysis is in flight")
            return False

        self._sequence += 1
        sequence = self._sequence
        self._input = request
        self._result = None
        self._error_message = None
        self._transition(AnalysisStatus.ANALYZING)

        try:
            analysis = await self._service.analyze(request, self.language)
        except asyncio.CancelledError:
            if self._is_current(sequence):
                self._fail(t(self.language, "error.generic"))
            raise
        except Exception as e:
            if not self._is_current(sequence):
                logger.info(f"Discarding stale failure of request #{sequence}: {e}")
                return True
            if not isinstance(e, PolicyAnalysisError):
                logger.exception(f"Unexpected failure in request #{sequence}")
            key = "error.missing_credential" if isinstance(e, MissingCredential) else "error.generic"
            self._fail(t(self.language, key))
            return True

        if not self._is_current(sequence):
            logger.info(f"Discarding stale result of request #{sequence}")
            return True
        self._result = analysis
        self._error_message = None
        self._transition(AnalysisStatus.SUCCESS)
        return True

    def _fail(self, message: str) -> None:
        self._result = None
        self._error_message = message
        self._transition(AnalysisStatus.ERROR)

    async def submit_name(self, name: str) -> bool:
        return await self.submit(ByName(name=name))

    async def submit_text(self, text: str) -> bool:
        return await self.submit(ByText(text=text))

    async def submit_document(self, attachment: Optional[Attachment]) -> bool:
        return await self.submit(ByDocument(attachment=attachment))

    def reset(self) -> None:
        """Back to IDLE; a request still in flight is abandoned."""
        self._sequence += 1
        self._input = None
        self._result = None
        self._error_message = None
        self._transition(AnalysisStatus.IDLE)
