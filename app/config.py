from pydantic_settings import BaseSettings

_DEFAULT_SYSTEM_PROMPT = """\
You are a PostgreSQL assistant that answers questions about the data in the \
connected database.

Rules:
1. Use the 'query' tool to run SQL against the database. Never invent results.
2. Only run read-only statements (SELECT, WITH, EXPLAIN, SHOW).
3. If you need the schema, query information_schema first.
4. Respond with a single JSON object and nothing else, in this shape:
   {"sql": "<the final SQL you ran>", "results": [<rows>], \
"explanation": "<one or two sentences>"}"""


class Settings(BaseSettings):
    mistral_api_key: str = ""
    mistral_chat_model: str = "mistral-large-latest"
    mistral_base_url: str = "https://api.mistral.ai/v1"

    llm_timeout_seconds: float = 120.0
    max_tool_rounds: int = 5

    nlq_system_prompt: str = _DEFAULT_SYSTEM_PROMPT

    database_url: str = ""
    query_row_limit: int = 200

    model_config = {"env_file": ".env"}


settings = Settings()
