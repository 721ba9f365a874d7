from pydantic import BaseModel, ConfigDict, Field, field_validator


class Message(BaseModel):
    """A single message in the conversation."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(..., pattern="^(user|assistant)$")
    content: str


class ChatRequest(BaseModel):
    """Request body for POST /api/chat."""

    prompt: str

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value


class ChatResult(BaseModel):
    """Successful reply from the assistant."""

    result: str


class ChatError(BaseModel):
    """Error body returned with a non-2xx status."""

    error: str


class HealthResponse(BaseModel):
    status: str
    service: str
    provider: str
    model: str
