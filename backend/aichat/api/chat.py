"""Chat API endpoint.

Single-turn: each prompt is answered on its own, without conversation history.
"""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from aichat.schemas.chat import ChatError, ChatRequest, ChatResult
from aichat.services.gateway import CompletionGateway

logger = logging.getLogger(__name__)
router = APIRouter()


def get_gateway(request: Request) -> CompletionGateway:
    """Gateway instance created by the app factory."""
    return request.app.state.gateway


@router.post(
    "/chat",
    response_model=ChatResult,
    responses={400: {"model": ChatError}, 500: {"model": ChatError}},
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": ChatRequest.model_json_schema()}},
        }
    },
)
async def send_chat_message(
    request: Request,
    gateway: CompletionGateway = Depends(get_gateway),
):
    """Send a prompt and receive the assistant's reply.

    The body is read raw so that a missing, blank or malformed prompt gets the
    same 400 response instead of a 422 validation error.
    """
    try:
        body = await request.json()
    except ValueError:
        logger.warning("Chat request body is not valid JSON")
        body = None

    response = await gateway.handle(body)
    return JSONResponse(status_code=response.status_code, content=response.payload)
