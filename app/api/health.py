from fastapi import APIRouter

from app.config import settings
from app.models.schemas import HealthResponse

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        mistral_configured=bool(settings.mistral_api_key),
        database_configured=bool(settings.database_url),
        chat_model=settings.mistral_chat_model,
    )
