"""Natural language query endpoint.

Thin HTTP layer: no business logic, no LLM calls.
Just: validate request → call service → return the model's JSON as-is.
Processing failures are turned into problem documents by app.api.errors.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, Response

from app.core.query_service import NaturalLanguageQueryService, get_query_service
from app.models.schemas import PromptRequest

EMPTY_PROMPT_MESSAGE = "The natural language query cannot be empty."

router = APIRouter(
    prefix="/api/natural-language-query",
    tags=["Natural Language Query Interface"],
)


@router.post(
    "/process",
    response_class=Response,
    summary="Process natural language query",
    responses={
        200: {"content": {"application/json": {}}},
        400: {"content": {"text/plain": {}}},
    },
)
def process_query(
    request: PromptRequest,
    service: NaturalLanguageQueryService = Depends(get_query_service),
) -> Response:
    """Convert a natural language query into SQL, run it, and return the model's JSON answer."""
    prompt = request.prompt
    if prompt is None or not prompt.strip():
        return PlainTextResponse(EMPTY_PROMPT_MESSAGE, status_code=400)

    result = service.process(prompt)
    return Response(content=result, media_type="application/json")
