"""
Integration tests for the PolicyEase HTTP endpoints.
"""

from fastapi.testclient import TestClient

from policyease.core.config import CONFIG_ANALYSIS_SERVICE
from policyease.core.errors import MalformedOutput, MissingCredential, TransportFailure


class TestHealthEndpoints:

    def test_health_returns_200(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_config_hides_credentials(self, client: TestClient):
        data = client.get("/config").json()

        assert data["default_language"] == "en"
        assert data["credential_configured"] is False
        assert "OPENAI_API_KEY" not in data
        assert not any("key" in k.lower() and k != "credential_configured" for k in data)

    def test_sample_policy(self, client: TestClient):
        response = client.get("/analyze/samples")
        assert response.json() == {"policy_name": "中华人民共和国个人信息保护法"}


class TestAnalyzeEndpoints:

    def test_analyze_by_name(self, client: TestClient, fake_client):
        response = client.post("/analyze/name", json={"name": "PIPL"})

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "中华人民共和国个人信息保护法"
        assert data["summaryTldr"]
        assert data["articles"][0]["designPriority"] == "high"
        assert "sources" not in data
        assert fake_client.requests[0].search_augmented is True

    def test_blank_name_is_rejected(self, client: TestClient, fake_client):
        response = client.post("/analyze/name", json={"name": "   "})
        assert response.status_code == 400
        assert fake_client.requests == []

    def test_analyze_document_upload(self, client: TestClient, fake_client):
        response = client.post(
            "/analyze/document",
            files={"file": ("law.pdf", b"%PDF-1.7 content", "application/pdf")},
            data={"language": "zh"},
        )

        assert response.status_code == 200
        request = fake_client.requests[0]
        assert request.attachment.mime_type == "application/pdf"
        assert "简体中文" in request.instruction

    def test_unsupported_upload(self, client: TestClient):
        response = client.post(
            "/analyze/document",
            files={"file": ("law.docx", b"PK", "application/octet-stream")},
        )
        assert response.status_code == 415

    def test_oversized_upload(self, client: TestClient):
        response = client.post(
            "/analyze/document",
            files={"file": ("law.txt", b"x" * 4096, "text/plain")},
        )
        assert response.status_code == 413


class TestErrorMapping:

    def test_status_codes(self, client: TestClient, fake_client):
        cases = [
            (MissingCredential("no key"), 503),
            (TransportFailure("offline"), 502),
            (MalformedOutput("bad", raw_text="SECRET RAW OUTPUT"), 502),
        ]
        for error, expected in cases:
            fake_client.error = error
            response = client.post("/analyze/name", json={"name": "PIPL"})

            assert response.status_code == expected
            assert response.json()["error"] == type(error).__name__
            assert "SECRET RAW OUTPUT" not in response.text

    def test_service_is_on_app_state(self, client: TestClient, analysis_service):
        assert getattr(client.app.state, CONFIG_ANALYSIS_SERVICE) is analysis_service


class TestSessionEndpoints:

    def _create(self, client: TestClient, **body) -> str:
        response = client.post("/sessions", json=body or None)
        assert response.status_code == 200
        return response.json()["session_id"]

    def test_create_uses_default_language(self, client: TestClient):
        response = client.post("/sessions")
        assert response.json()["language"] == "en"

    def test_full_cycle(self, client: TestClient):
        session_id = self._create(client, language="zh")

        snapshot = client.get(f"/sessions/{session_id}").json()
        assert snapshot["status"] == "idle"
        assert snapshot["language"] == "zh"

        snapshot = client.post(f"/sessions/{session_id}/name", json={"name": "PIPL"}).json()
        assert snapshot["status"] == "success"
        assert snapshot["inputKind"] == "name"
        assert snapshot["result"]["title"] == "中华人民共和国个人信息保护法"

        snapshot = client.post(f"/sessions/{session_id}/reset").json()
        assert snapshot["status"] == "idle"
        assert "result" not in snapshot
        assert "inputKind" not in snapshot

    def test_failure_is_reported_in_snapshot(self, client: TestClient, fake_client):
        fake_client.error = TransportFailure("offline")
        session_id = self._create(client)

        response = client.post(f"/sessions/{session_id}/text", json={"text": "Rule 1"})

        assert response.status_code == 200
        snapshot = response.json()
        assert snapshot["status"] == "error"
        assert snapshot["errorMessage"].startswith("Unable to find or analyze")
        assert "result" not in snapshot

    def test_blank_submission(self, client: TestClient):
        session_id = self._create(client)
        response = client.post(f"/sessions/{session_id}/text", json={"text": "  "})
        assert response.status_code == 400

    def test_document_submission(self, client: TestClient):
        session_id = self._create(client)
        response = client.post(
            f"/sessions/{session_id}/document",
            files={"file": ("law.md", b"# Article 1", "text/markdown")},
        )
        assert response.json()["inputKind"] == "document"

    def test_unknown_session(self, client: TestClient):
        assert client.get("/sessions/missing").status_code == 404
        assert client.post("/sessions/missing/reset").status_code == 404

    def test_delete(self, client: TestClient):
        session_id = self._create(client)

        assert client.delete(f"/sessions/{session_id}").status_code == 204
        assert client.get(f"/sessions/{session_id}").status_code == 404
        assert client.delete(f"/sessions/{session_id}").status_code == 404
