"""Health check endpoint."""
from fastapi import APIRouter

from aichat.config import get_settings
from aichat.schemas.chat import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Liveness check. Does not call the remote completion service."""
    settings = get_settings()
    return HealthResponse(
        status="healthy",
        service="aichat",
        provider=settings.llm_provider,
        model=settings.llm_chat_model,
    )
