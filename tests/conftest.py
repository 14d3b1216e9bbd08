"""
Pytest configuration and fixtures for PolicyEase.
"""

import asyncio
import json
import os

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing the app
os.environ["ENVIRONMENT"] = "test"

from policyease.agent.schemas.generation import GenerationResult, GroundingReference
from policyease.agent.schemas.requests import OutputLanguage
from policyease.app import create_app
from policyease.core.config import Settings, get_settings
from policyease.services.analysis_service import PolicyAnalysisService


class FakeGenerationClient:
    """Stands in for the OpenAI-backed client; records every request it receives."""

    def __init__(self, text: str = "", references=None, error: Exception | None = None):
        self.text = text
        self.references = references or []
        self.error = error
        self.requests = []

    async def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return GenerationResult(text=self.text, grounding_references=self.references)


class BlockingGenerationClient(FakeGenerationClient):
    """Holds every call until `release()` so tests can observe the ANALYZING state."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self):
        self._gate.set()

    async def generate(self, request):
        self.started.set()
        await self._gate.wait()
        return await super().generate(request)


@pytest.fixture
def structured_payload():
    """A well-formed by-name / by-document output."""
    return {
        "title": "中华人民共和国个人信息保护法",
        "toneAndIntent": "Strict, protective of individuals.",
        "summaryTldr": "Regulates the processing of personal information.",
        "history": [
            {
                "date": "2021-08-20",
                "versionName": "Adopted",
                "changeSummary": "First version adopted by the NPC Standing Committee.",
            }
        ],
        "coreConcepts": [
            {"term": "Personal information", "definition": "Any information about an identified person."}
        ],
        "articles": [
            {
                "chapter": "Chapter II",
                "articleNumber": "Article 13",
                "content": "Processing requires a legal basis such as consent.",
                "systemDesignImplication": "Add a consent capture and withdrawal flow.",
                "designPriority": "high",
            },
            {
                "chapter": "Chapter I",
                "articleNumber": "Article 1",
                "content": "This law is enacted to protect personal information rights.",
                "designPriority": "none",
            },
        ],
        "flashcards": [
            {"question": "When did the law take effect?", "answer": "1 November 2021."}
        ],
    }


@pytest.fixture
def text_payload():
    """A well-formed output of the simple pasted-text variant."""
    return {
        "title": "Office Recycling Policy",
        "toneAndIntent": "Encouraging.",
        "summaryTldr": "Staff must sort waste into three bins.",
        "eli5Explanation": "Like putting toys back in the right boxes.",
        "history": [],
        "coreConcepts": [{"term": "Recyclable", "definition": "Material that can be reused."}],
        "actionItems": [{"who": "All staff", "what": "Sort waste", "deadline": "Ongoing"}],
        "mnemonicDevice": {"phrase": "PPG", "explanation": "Paper, Plastic, Glass."},
        "flashcards": [{"question": "How many bins?", "answer": "Three."}],
    }


@pytest.fixture
def citations():
    return [
        GroundingReference(title="NPC", uri="https://www.npc.gov.cn/pipl"),
        GroundingReference(title="Duplicate", uri="https://www.npc.gov.cn/pipl"),
        GroundingReference(title=None, uri="https://www.cac.gov.cn/notice"),
    ]


@pytest.fixture
def fake_client(structured_payload):
    return FakeGenerationClient(text=json.dumps(structured_payload, ensure_ascii=False))


@pytest.fixture
def analysis_service(fake_client):
    return PolicyAnalysisService(fake_client, default_language=OutputLanguage.EN)


@pytest.fixture
def test_settings():
    return Settings(
        OPENAI_API_KEY=None,
        ENVIRONMENT="test",
        DEFAULT_LANGUAGE=OutputLanguage.EN,
        MAX_UPLOAD_BYTES=1024,
    )


@pytest.fixture
def client(test_settings, analysis_service):
    """FastAPI test client wired to the fake generation client."""
    app = create_app(settings=test_settings, analysis_service=analysis_service)
    app.dependency_overrides[get_settings] = lambda: test_settings
    with TestClient(app) as c:
        yield c
