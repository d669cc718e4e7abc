"""Exception handlers that turn service errors into problem documents (RFC 7807)."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.query_service import QueryProcessingError
from app.models.schemas import ProblemDetail

QUERY_ERROR_TYPE = "uri:mcpassistant:query-error"
QUERY_ERROR_TITLE = "Query Processing Error"


def handle_query_processing_error(
    request: Request, exc: QueryProcessingError
) -> JSONResponse:
    problem = ProblemDetail(
        type=QUERY_ERROR_TYPE,
        title=QUERY_ERROR_TITLE,
        status=500,
        detail=str(exc),
        instance=request.url.path,
    )
    return JSONResponse(
        status_code=500,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QueryProcessingError, handle_query_processing_error)
