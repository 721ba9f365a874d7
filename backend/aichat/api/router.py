from fastapi import APIRouter

from aichat.api import chat, health

api_router = APIRouter(prefix="/api")

api_router.include_router(chat.router, tags=["Chat"])
api_router.include_router(health.router, tags=["Health"])
