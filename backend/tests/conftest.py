import pytest
from fastapi.testclient import TestClient

from aichat.main import create_app
from aichat.services.gateway import CompletionGateway
from aichat.services.llm_provider import Completion, CompletionChoice


class FakeCapability:
    """In-memory stand-in for the remote completion service."""

    def __init__(self, completion: Completion | None = None, error: Exception | None = None):
        self.completion = completion or Completion(
            choices=[CompletionChoice(role="assistant", content="Hi there")],
            raw={"id": "chatcmpl-test"},
        )
        self.error = error
        self.calls = []

    async def complete(self, model, messages, max_tokens):
        self.calls.append({"model": model, "messages": messages, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.completion


@pytest.fixture
def fake_capability():
    """Fake remote capability answering "Hi there"."""
    return FakeCapability()


@pytest.fixture
def gateway(fake_capability):
    return CompletionGateway(fake_capability, model="gpt-4o-mini", max_tokens=250)


@pytest.fixture
def test_client(gateway):
    """FastAPI test client wired to the fake capability."""
    with TestClient(create_app(gateway=gateway)) as client:
        yield client
