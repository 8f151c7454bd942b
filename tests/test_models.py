# tests/test_models.py
"""
Unit tests for the chat request/response models.

Verifies:
  - Message role and content validation, convenience constructors.
  - Request parameter ranges and the non-empty messages rule.
  - to_payload() omits unset fields and only carries stream when enabled.
  - with_*() helpers return validated copies.
  - Responses tolerate extra fields and expose the first choice's text.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from openrouter_client.models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ResponseFormat,
)


def _request(**kwargs) -> ChatCompletionRequest:
    return ChatCompletionRequest(messages=[ChatMessage.user("hi")], **kwargs)


class TestChatMessage:
    def test_constructors(self):
        assert ChatMessage.system("be brief").role == "system"
        assert ChatMessage.assistant("ok").role == "assistant"
        tool = ChatMessage.tool('{"temp": 21}', tool_call_id="call_1")
        assert tool.role == "tool"
        assert tool.tool_call_id == "call_1"

    def test_invalid_role(self):
        with pytest.raises(ValidationError, match="role must be one of"):
            ChatMessage(role="robot", content="beep")

    def test_empty_content(self):
        with pytest.raises(ValidationError, match="content must not be empty"):
            ChatMessage.user("")

    def test_content_parts(self):
        parts = [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": "https://img.example/cat.png"}},
        ]
        assert ChatMessage.user(parts).content == parts


class TestChatCompletionRequest:
    def test_messages_required(self):
        with pytest.raises(ValidationError):
            ChatCompletionRequest(messages=[])

    @pytest.mark.parametrize(
        "field,value",
        [
            ("temperature", 2.5),
            ("temperature", -0.1),
            ("top_p", 1.5),
            ("max_tokens", 0),
            ("frequency_penalty", 3.0),
            ("presence_penalty", -3.0),
        ],
    )
    def test_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            _request(**{field: value})

    def test_payload_omits_unset_fields(self):
        payload = _request(model="openai/gpt-4o", temperature=0.2).to_payload()
        assert payload == {
            "messages": [{"role": "user", "content": "hi"}],
            "model": "openai/gpt-4o",
            "temperature": 0.2,
        }

    def test_streaming_payload(self):
        request = _request()
        streaming = request.with_streaming()
        assert streaming.to_payload()["stream"] is True
        assert "stream" not in request.to_payload()

    def test_with_model(self):
        assert _request().with_model("mistralai/mistral-large").model == "mistralai/mistral-large"

    def test_with_temperature_validates(self):
        assert _request().with_temperature(0.7).temperature == 0.7
        with pytest.raises(ValidationError):
            _request().with_temperature(5.0)

    def test_with_max_tokens(self):
        assert _request().with_max_tokens(256).to_payload()["max_tokens"] == 256

    def test_response_format_in_payload(self):
        request = _request(response_format=ResponseFormat.json_object())
        assert request.to_payload()["response_format"] == {"type": "json_object"}

    def test_frozen(self):
        with pytest.raises(ValidationError):
            _request().model = "openai/gpt-4o"


class TestResponseFormat:
    def test_schema_required(self):
        with pytest.raises(ValidationError, match="json_schema is required"):
            ResponseFormat(type="json_schema")

    def test_from_schema(self):
        schema = {"name": "answer", "schema": {"type": "object"}}
        assert ResponseFormat.from_schema(schema).json_schema == schema


class TestChatCompletionResponse:
    def test_from_api(self):
        response = ChatCompletionResponse.from_api(
            {
                "id": "gen-123",
                "model": "openai/gpt-4o",
                "provider": "OpenAI",
                "choices": [
                    {"index": 0, "message": {"role": "assistant", "content": "Hello!"}, "finish_reason": "stop"}
                ],
                "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
            }
        )
        assert response.content == "Hello!"
        assert response.usage.total_tokens == 7
        assert response.choices[0].finish_reason == "stop"
        assert response.model_extra["provider"] == "OpenAI"

    def test_no_choices(self):
        assert ChatCompletionResponse.from_api({}).content == ""
