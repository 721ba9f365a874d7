"""
Tests for the POST /api/chat endpoint.

The remote completion service is replaced by the FakeCapability fixture.
"""
from aichat.services.llm_provider import Completion, CompletionChoice, UpstreamAPIError


class TestChatEndpointValidation:
    """Requests without a usable prompt are rejected before any remote call."""

    def test_empty_body_object(self, test_client, fake_capability):
        response = test_client.post("/api/chat", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}
        assert fake_capability.calls == []

    def test_blank_prompt(self, test_client, fake_capability):
        response = test_client.post("/api/chat", json={"prompt": "   "})

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}
        assert fake_capability.calls == []

    def test_null_prompt(self, test_client):
        response = test_client.post("/api/chat", json={"prompt": None})

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}

    def test_body_is_not_json(self, test_client, fake_capability):
        response = test_client.post(
            "/api/chat",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}
        assert fake_capability.calls == []

    def test_body_is_a_list(self, test_client):
        response = test_client.post("/api/chat", json=["Hello"])

        assert response.status_code == 400
        assert response.json() == {"error": "Prompt is required"}


class TestChatEndpointSuccess:
    def test_returns_first_choice(self, test_client):
        response = test_client.post("/api/chat", json={"prompt": "Hello"})

        assert response.status_code == 200
        assert response.json() == {"result": "Hi there"}

    def test_single_turn_call_with_fixed_policy(self, test_client, fake_capability):
        test_client.post("/api/chat", json={"prompt": "Hello"})
        test_client.post("/api/chat", json={"prompt": "And again"})

        # Each request is sent on its own, without earlier turns
        assert fake_capability.calls == [
            {
                "model": "gpt-4o-mini",
                "messages": [{"role": "user", "content": "Hello"}],
                "max_tokens": 250,
            },
            {
                "model": "gpt-4o-mini",
                "messages": [{"role": "user", "content": "And again"}],
                "max_tokens": 250,
            },
        ]

    def test_long_prompt_is_accepted(self, test_client, fake_capability):
        prompt = "x" * 20_000
        response = test_client.post("/api/chat", json={"prompt": prompt})

        assert response.status_code == 200
        assert fake_capability.calls[0]["messages"][0]["content"] == prompt


class TestChatEndpointFailures:
    def test_empty_choice_list(self, test_client, fake_capability):
        fake_capability.completion = Completion(choices=[], raw={"choices": []})

        response = test_client.post("/api/chat", json={"prompt": "Hello"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to get a valid response from AI. Check server logs for details."
        }

    def test_choice_without_content(self, test_client, fake_capability):
        fake_capability.completion = Completion(
            choices=[CompletionChoice(role="assistant", content=None)]
        )

        response = test_client.post("/api/chat", json={"prompt": "Hello"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to get a valid response from AI. Check server logs for details."
        }

    def test_upstream_error_is_forwarded(self, test_client, fake_capability):
        fake_capability.error = UpstreamAPIError(status=429, message="rate limited")

        response = test_client.post("/api/chat", json={"prompt": "Hello"})

        assert response.status_code == 429
        assert response.json() == {"error": "rate limited"}

    def test_upstream_auth_error_is_forwarded(self, test_client, fake_capability):
        fake_capability.error = UpstreamAPIError(status=401, message="Incorrect API key provided")

        response = test_client.post("/api/chat", json={"prompt": "Hello"})

        assert response.status_code == 401
        assert response.json() == {"error": "Incorrect API key provided"}

    def test_unrecognized_error_does_not_leak(self, test_client, fake_capability):
        fake_capability.error = RuntimeError("connection pool exhausted at 10.0.0.3")

        response = test_client.post("/api/chat", json={"prompt": "Hello"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to generate response due to an internal error."
        }
        assert "10.0.0.3" not in response.text


def test_health(test_client):
    response = test_client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["service"] == "aichat"
