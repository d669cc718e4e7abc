"""Shared test fixtures for the natural language query test suite."""

import pytest
from sqlalchemy import create_engine, text

from app.config import settings
from app.core.query_service import NaturalLanguageQueryService

# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

requires_api_key = pytest.mark.skipif(
    not settings.mistral_api_key,
    reason="MISTRAL_API_KEY not configured — skipping live API test",
)

integration = pytest.mark.integration


# ---------------------------------------------------------------------------
# Stub chat client
# ---------------------------------------------------------------------------

PRODUCTS_PROMPT = "Show me all products under 1000"
PRODUCTS_RESPONSE = (
    '{"sql":"SELECT * FROM products WHERE price < 1000",'
    '"explanation":"Lists every product priced below 1000."}'
)


class StubChatClient:
    """Records every call; returns a fixed response or raises a fixed error."""

    def __init__(self, response: str = PRODUCTS_RESPONSE, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def call(self, system: str, user: str) -> str:
        self.calls.append((system, user))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def stub_client() -> StubChatClient:
    return StubChatClient()


@pytest.fixture
def service(stub_client: StubChatClient) -> NaturalLanguageQueryService:
    return NaturalLanguageQueryService(stub_client, system_prompt="You are a test assistant.")


# ---------------------------------------------------------------------------
# Database fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def products_db_url(tmp_path) -> str:
    """File-backed SQLite database with a small products table."""
    url = f"sqlite:///{tmp_path / 'shop.db'}"
    engine = create_engine(url)
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE products (id INTEGER PRIMARY KEY, name TEXT, price NUMERIC)"
        ))
        conn.execute(
            text("INSERT INTO products (id, name, price) VALUES (:id, :name, :price)"),
            [
                {"id": 1, "name": "Keyboard", "price": 49},
                {"id": 2, "name": "Monitor", "price": 899},
                {"id": 3, "name": "Laptop", "price": 1899},
            ],
        )
    engine.dispose()
    return url
