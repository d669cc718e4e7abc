"""API endpoint tests using FastAPI TestClient.

Tests the thin HTTP layer (status codes, content types, error documents).
The service's chat client is replaced with a stub.
"""

import pytest
from fastapi.testclient import TestClient

from app.core.query_service import NaturalLanguageQueryService, get_query_service
from app.main import app
from tests.conftest import PRODUCTS_PROMPT, PRODUCTS_RESPONSE, StubChatClient

client = TestClient(app)

PROCESS_URL = "/api/natural-language-query/process"


@pytest.fixture
def stub(stub_client):
    """Route the endpoint to a service backed by the stub chat client."""
    service = NaturalLanguageQueryService(stub_client, system_prompt="sys")
    app.dependency_overrides[get_query_service] = lambda: service
    yield stub_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Health endpoint
# ---------------------------------------------------------------------------


class TestHealthEndpoint:
    def test_health_returns_200(self):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "mistral_configured" in data
        assert "database_configured" in data
        assert "chat_model" in data


# ---------------------------------------------------------------------------
# Process endpoint
# ---------------------------------------------------------------------------


class TestProcessEndpoint:
    def test_valid_prompt_returns_model_json_verbatim(self, stub):
        response = client.post(PROCESS_URL, json={"prompt": PRODUCTS_PROMPT})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        assert response.text == PRODUCTS_RESPONSE
        assert stub.calls == [("sys", PRODUCTS_PROMPT)]

    def test_body_is_not_reencoded(self, stub):
        stub.response = '{ "a" : 1 ,"b":[ 2 ] }'
        response = client.post(PROCESS_URL, json={"prompt": "q"})
        assert response.text == '{ "a" : 1 ,"b":[ 2 ] }'

    @pytest.mark.parametrize(
        "body",
        [{"prompt": ""}, {"prompt": "   "}, {"prompt": None}, {}],
    )
    def test_empty_prompt_returns_400(self, stub, body):
        response = client.post(PROCESS_URL, json=body)
        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "The natural language query cannot be empty."
        assert stub.calls == []

    def test_processing_failure_returns_problem_document(self, stub):
        stub.error = RuntimeError("connection refused")
        response = client.post(PROCESS_URL, json={"prompt": "What is AI?"})
        assert response.status_code == 500
        assert response.headers["content-type"].startswith("application/problem+json")
        data = response.json()
        assert data["type"] == "uri:mcpassistant:query-error"
        assert data["title"] == "Query Processing Error"
        assert data["detail"] == "An error occurred while processing your query."
        assert data["status"] == 500
        assert data["instance"] == PROCESS_URL
        assert "connection refused" not in response.text

    def test_non_object_body_returns_422(self, stub):
        response = client.post(PROCESS_URL, json=["not", "an", "object"])
        assert response.status_code == 422
        assert stub.calls == []

    def test_get_not_allowed(self):
        response = client.get(PROCESS_URL)
        assert response.status_code == 405


class TestProcessEndpointWithFailingClient:
    def test_each_request_is_independent(self):
        failing = StubChatClient(error=ValueError("malformed output"))
        app.dependency_overrides[get_query_service] = (
            lambda: NaturalLanguageQueryService(failing, system_prompt="sys")
        )
        try:
            first = client.post(PROCESS_URL, json={"prompt": "q"})
            failing.error = None
            second = client.post(PROCESS_URL, json={"prompt": "q"})
        finally:
            app.dependency_overrides.clear()

        assert first.status_code == 500
        assert second.status_code == 200
        assert second.text == PRODUCTS_RESPONSE
