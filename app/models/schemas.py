from pydantic import BaseModel


# ---------------------------------------------------------------------------
# API request / response models
# ---------------------------------------------------------------------------

class PromptRequest(BaseModel):
    """Request body for POST /api/natural-language-query/process.

    ``prompt`` is optional at the schema level so that a missing or null
    prompt reaches the endpoint and gets the same 400 as a blank one.
    """

    prompt: str | None = None


class ProblemDetail(BaseModel):
    """RFC 7807 problem document returned on processing failures."""

    type: str
    title: str
    status: int
    detail: str
    instance: str | None = None


class HealthResponse(BaseModel):
    """Returned from GET /api/health."""

    status: str
    mistral_configured: bool
    database_configured: bool
    chat_model: str
