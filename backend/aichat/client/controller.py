"""Client-side conversation controller.

Holds the ordered message list, the pending input buffer and the in-flight
flag, and drives one POST /api/chat request per turn. At most one request is
outstanding at a time; submissions made while sending are ignored.
"""
import asyncio
import logging
from collections.abc import Callable
from enum import Enum

import httpx

from aichat.schemas.chat import ChatRequest, Message

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
FALLBACK_REPLY = "Sorry, I'm having trouble connecting. Please try again later."


class ControllerState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"


class ChatReplyError(Exception):
    """Raised when the server answers without a usable result."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConversationController:
    """Explicit Idle/Sending state machine over an append-only message list."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        client: httpx.AsyncClient | None = None,
        is_authorized: Callable[[], bool] | None = None,
        chat_path: str = CHAT_PATH,
    ):
        self._owns_client = client is None
        # No timeout: a stalled request keeps the controller in SENDING
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=None)
        self._is_authorized = is_authorized or (lambda: True)
        self._chat_path = chat_path

        self._messages: list[Message] = []
        self._input = ""
        self._state = ControllerState.IDLE
        self._pending: asyncio.Task | None = None

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def input(self) -> str:
        return self._input

    def set_input(self, text: str) -> None:
        """Update the pending input buffer. Ignored while sending."""
        if self.is_sending():
            return
        self._input = text

    def current_messages(self) -> list[Message]:
        return list(self._messages)

    def is_sending(self) -> bool:
        return self._state is ControllerState.SENDING

    def submit(self, text: str | None = None) -> asyncio.Task | None:
        """Start a turn with `text`, or with the input buffer if omitted.

        Appends the user message synchronously and schedules the request on
        the running event loop. Returns the settlement task, or None when the
        submission is ignored (blank text, already sending, not authorized).
        """
        if text is None:
            text = self._input
        prompt = text.strip()
        if not prompt or self.is_sending() or not self._is_authorized():
            return None

        loop = asyncio.get_running_loop()

        self._state = ControllerState.SENDING
        self._messages.append(Message(role="user", content=prompt))
        self._input = ""
        self._pending = loop.create_task(self._run_turn(prompt))
        return self._pending

    async def wait_idle(self) -> None:
        """Wait for the outstanding turn, if any, to settle."""
        if self._pending is not None:
            await self._pending

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _run_turn(self, prompt: str) -> None:
        reply = FALLBACK_REPLY
        try:
            reply = await self._request_reply(prompt)
        except Exception:
            logger.exception("Failed to get response from AI")
        finally:
            self._settle(reply)

    async def _request_reply(self, prompt: str) -> str:
        response = await self._client.post(
            self._chat_path, json=ChatRequest(prompt=prompt).model_dump()
        )
        response.raise_for_status()

        data = response.json()
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, str) or not result:
            raise ChatReplyError(f"Response has no result: {data!r}")
        return result

    def _settle(self, reply: str) -> None:
        self._messages.append(Message(role="assistant", content=reply))
        self._state = ControllerState.IDLE
        self._pending = None
