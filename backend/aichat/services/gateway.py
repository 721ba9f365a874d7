"""Completion gateway for the chat endpoint.

Turns one chat request into exactly one remote completion call and maps the
outcome into a normalized {"result"} or {"error"} payload. Failure details
are logged for operators and never returned to the caller.
"""
import json
import logging
from enum import Enum
from typing import Any, NamedTuple

from pydantic import ValidationError

from aichat.config import Settings, get_settings
from aichat.schemas.chat import ChatError, ChatRequest, ChatResult
from aichat.services.llm_provider import (
    Completion,
    CompletionCapability,
    LangChainCompletionCapability,
    UpstreamAPIError,
)

logger = logging.getLogger(__name__)

MISSING_PROMPT_MESSAGE = "Prompt is required"
MALFORMED_RESPONSE_MESSAGE = (
    "Failed to get a valid response from AI. Check server logs for details."
)
INTERNAL_ERROR_MESSAGE = "Failed to generate response due to an internal error."


class ErrorKind(str, Enum):
    MISSING_PROMPT = "missing_prompt"
    UPSTREAM_API_ERROR = "upstream_api_error"
    MALFORMED_UPSTREAM_RESPONSE = "malformed_upstream_response"
    INTERNAL_ERROR = "internal_error"


class GatewayError(Exception):
    """Raised when a chat request cannot be answered."""

    def __init__(self, kind: ErrorKind, status_code: int, message: str):
        self.kind = kind
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class GatewayResponse(NamedTuple):
    status_code: int
    payload: dict


def parse_prompt(body: Any) -> str:
    """Extract the prompt from a decoded request body.

    Raises:
        GatewayError: MISSING_PROMPT if the body has no usable prompt.
    """
    if not isinstance(body, dict):
        raise GatewayError(ErrorKind.MISSING_PROMPT, 400, MISSING_PROMPT_MESSAGE)
    try:
        request = ChatRequest.model_validate(body)
    except ValidationError:
        raise GatewayError(ErrorKind.MISSING_PROMPT, 400, MISSING_PROMPT_MESSAGE)
    return request.prompt


def first_content(completion: Completion) -> str | None:
    if not completion.choices:
        return None
    content = completion.choices[0].content
    if not isinstance(content, str) or not content:
        return None
    return content


class CompletionGateway:
    """Stateless per call; safe to share across concurrent requests."""

    def __init__(
        self,
        capability: CompletionCapability,
        model: str = "gpt-4o-mini",
        max_tokens: int = 250,
    ):
        self.capability = capability
        self.model = model
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        capability: CompletionCapability | None = None,
    ) -> "CompletionGateway":
        settings = settings or get_settings()
        return cls(
            capability=capability or LangChainCompletionCapability(),
            model=settings.llm_chat_model,
            max_tokens=settings.llm_max_tokens,
        )

    async def complete(self, body: Any) -> str:
        """Validate the body, call the remote capability once, return its text.

        Raises:
            GatewayError: for every failure, already mapped to status and message.
        """
        prompt = parse_prompt(body)

        try:
            completion = await self.capability.complete(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=self.max_tokens,
            )
        except UpstreamAPIError as e:
            logger.error(f"Error calling AI API: status={e.status}, message={e.message}")
            raise GatewayError(ErrorKind.UPSTREAM_API_ERROR, e.status, e.message)
        except Exception:
            logger.exception("Error calling AI API")
            raise GatewayError(ErrorKind.INTERNAL_ERROR, 500, INTERNAL_ERROR_MESSAGE)

        logger.debug(f"AI response: {json.dumps(completion.raw, default=str)}")

        content = first_content(completion)
        if content is None:
            logger.error(
                f"Unexpected AI response structure: choices={completion.choices}, "
                f"raw={json.dumps(completion.raw, default=str)}"
            )
            raise GatewayError(
                ErrorKind.MALFORMED_UPSTREAM_RESPONSE, 500, MALFORMED_RESPONSE_MESSAGE
            )

        return content

    async def handle(self, body: Any) -> GatewayResponse:
        """Answer one chat request. Never raises."""
        try:
            result = await self.complete(body)
        except GatewayError as e:
            logger.info(f"Chat request failed: kind={e.kind.value}, status={e.status_code}")
            return GatewayResponse(e.status_code, ChatError(error=e.message).model_dump())

        return GatewayResponse(200, ChatResult(result=result).model_dump())
