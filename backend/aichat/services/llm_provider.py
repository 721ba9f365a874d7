"""Multi-provider remote completion capability.

Supports: OpenAI, Groq, Google (Gemini)

Upstream failures that carry an HTTP status are translated into
UpstreamAPIError here, so callers never branch on provider-specific
exception types.
"""
import logging
from collections.abc import Callable
from typing import Any, Literal, NamedTuple, Protocol

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_core.outputs import LLMResult

from aichat.config import Settings, get_settings

logger = logging.getLogger(__name__)

LLMProvider = Literal["openai", "groq", "google"]


class UpstreamAPIError(Exception):
    """Structured failure reported by the remote completion service."""

    def __init__(self, status: int, message: str):
        self.status = status
        self.message = message
        super().__init__(message)


class CompletionChoice(NamedTuple):
    """One candidate completion."""

    role: str
    content: str | None


class Completion(NamedTuple):
    """Result of a single remote completion call."""

    choices: list[CompletionChoice]
    raw: dict | None = None


class CompletionCapability(Protocol):
    async def complete(
        self, model: str, messages: list[dict], max_tokens: int
    ) -> Completion:
        ...


def get_llm(
    model: str | None = None,
    provider: LLMProvider | None = None,
    max_tokens: int | None = None,
    settings: Settings | None = None,
) -> BaseChatModel:
    """Get a chat model instance for the configured provider.

    Args:
        model: Model name. If None, uses LLM_CHAT_MODEL from settings.
        provider: Provider name. If None, uses LLM_PROVIDER from settings.
        max_tokens: Output token ceiling. If None, uses LLM_MAX_TOKENS.
        settings: Settings to read from. Defaults to the process settings.

    Returns:
        BaseChatModel instance for the provider, with client-side retries off.
    """
    settings = settings or get_settings()
    provider = provider or settings.llm_provider
    model = model or settings.llm_chat_model
    max_tokens = max_tokens or settings.llm_max_tokens
    api_key = settings.provider_api_key
    timeout = settings.llm_timeout

    logger.info(f"Creating LLM: provider={provider}, model={model}, max_tokens={max_tokens}")

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        # The OpenAI client rejects an empty key at construction; resolving it
        # per request lets the API answer with its own 401 instead.
        return ChatOpenAI(
            model=model,
            api_key=api_key or (lambda: settings.provider_api_key),
            max_tokens=max_tokens,
            timeout=timeout,
            max_retries=0,
        )

    elif provider == "groq":
        from langchain_groq import ChatGroq

        return ChatGroq(
            model=model,
            api_key=api_key,
            max_tokens=max_tokens,
            timeout=timeout,
            max_retries=0,
        )

    elif provider == "google":
        from langchain_google_genai import ChatGoogleGenerativeAI

        return ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            max_output_tokens=max_tokens,
            timeout=timeout,
            max_retries=0,
        )

    else:
        raise ValueError(
            f"Unknown LLM provider: '{provider}'. Supported: openai, groq, google."
        )


def _http_status(exc: BaseException) -> int | None:
    status = getattr(exc, "status_code", None)
    if not isinstance(status, int):
        status = getattr(exc, "code", None)
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    if not 400 <= status <= 599:
        return None
    return int(status)


def to_upstream_error(exc: BaseException) -> UpstreamAPIError | None:
    """Translate a provider exception carrying an HTTP status.

    OpenAI and Groq clients expose `status_code`, Google clients expose
    `code`. LangChain wrappers (e.g. GoogleRateLimitError) drop the status,
    so the cause chain is followed until an exception carrying one is found.
    Returns None for failures without a usable status.
    """
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        status = _http_status(current)
        if status is not None:
            message = getattr(current, "message", None) or str(current)
            return UpstreamAPIError(status=status, message=str(message))
        current = current.__cause__ or current.__context__
    return None


def to_langchain_message(message: dict) -> BaseMessage:
    role = message.get("role")
    content = message.get("content", "")
    if role == "system":
        return SystemMessage(content=content)
    if role == "assistant":
        return AIMessage(content=content)
    return HumanMessage(content=content)


def _text_content(content: Any) -> str | None:
    # Gemini may return a list of content blocks instead of a string
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(str(part.get("text", "")))
        return "".join(parts)
    return content


def completion_from_result(result: LLMResult) -> Completion:
    """Map a LangChain LLMResult for a single prompt into a Completion."""
    generations = result.generations[0] if result.generations else []

    choices = []
    for generation in generations:
        message = getattr(generation, "message", None)
        if message is None:
            choices.append(CompletionChoice(role="assistant", content=generation.text or None))
        else:
            choices.append(
                CompletionChoice(role="assistant", content=_text_content(message.content))
            )

    raw = {
        "llm_output": result.llm_output,
        "generations": [
            {"text": g.text, "generation_info": g.generation_info} for g in generations
        ],
    }
    return Completion(choices=choices, raw=raw)


class LangChainCompletionCapability:
    """Remote completion capability backed by a LangChain chat model.

    Chat models are built lazily on first use, one per (model, max_tokens).
    """

    def __init__(
        self,
        llm_factory: Callable[[str, int], BaseChatModel] | None = None,
    ):
        self._llm_factory = llm_factory or (
            lambda model, max_tokens: get_llm(model=model, max_tokens=max_tokens)
        )
        self._models: dict[tuple[str, int], BaseChatModel] = {}

    def _get_model(self, model: str, max_tokens: int) -> BaseChatModel:
        key = (model, max_tokens)
        if key not in self._models:
            self._models[key] = self._llm_factory(model, max_tokens)
        return self._models[key]

    async def complete(
        self, model: str, messages: list[dict], max_tokens: int
    ) -> Completion:
        llm = self._get_model(model, max_tokens)
        lc_messages = [to_langchain_message(m) for m in messages]

        try:
            result = await llm.agenerate([lc_messages])
        except Exception as e:
            upstream = to_upstream_error(e)
            if upstream is None:
                raise
            logger.warning(f"Upstream API error: status={upstream.status}, message={upstream.message}")
            raise upstream from e

        return completion_from_result(result)
