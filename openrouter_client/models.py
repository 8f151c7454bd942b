# openrouter_client/models.py
"""
Pydantic v2 data models for the chat-completions API.

These are part of the public API surface — changes here require a major
version bump once the library reaches 1.0.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .constants import VALID_ROLES


class ChatMessage(BaseModel):
    """A single chat message in the OpenAI-compatible format."""

    role: str = Field(..., description="system | user | assistant | tool")
    content: Union[str, list[dict[str, Any]]] = Field(
        ..., description="Text, or a list of content parts (text / image_url)."
    )
    name: str | None = None
    tool_call_id: str | None = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: str) -> str:
        if v not in VALID_ROLES:
            raise ValueError(f"role must be one of {sorted(VALID_ROLES)}, got '{v}'")
        return v

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: Union[str, list[dict[str, Any]]]) -> Union[str, list[dict[str, Any]]]:
        if not v:
            raise ValueError("content must not be empty")
        return v

    @classmethod
    def system(cls, content: str, name: str | None = None) -> "ChatMessage":
        return cls(role="system", content=content, name=name)

    @classmethod
    def user(cls, content: Union[str, list[dict[str, Any]]], name: str | None = None) -> "ChatMessage":
        return cls(role="user", content=content, name=name)

    @classmethod
    def assistant(cls, content: str, name: str | None = None) -> "ChatMessage":
        return cls(role="assistant", content=content, name=name)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str | None = None) -> "ChatMessage":
        return cls(role="tool", content=content, tool_call_id=tool_call_id, name=name)


class ResponseFormat(BaseModel):
    """Structured output configuration."""

    type: Literal["json_object", "json_schema"]
    json_schema: dict[str, Any] | None = None

    @model_validator(mode="after")
    def require_schema(self) -> "ResponseFormat":
        if self.type == "json_schema" and not self.json_schema:
            raise ValueError("json_schema is required when type is 'json_schema'")
        return self

    @classmethod
    def json_object(cls) -> "ResponseFormat":
        return cls(type="json_object")

    @classmethod
    def from_schema(cls, schema: dict[str, Any]) -> "ResponseFormat":
        return cls(type="json_schema", json_schema=schema)


class ChatCompletionRequest(BaseModel):
    """
    A chat completion request.

    Unset optional fields are omitted from the payload so the API applies
    its own defaults.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[ChatMessage] = Field(..., min_length=1)
    model: str | None = None
    response_format: ResponseFormat | None = None
    stream: bool = False
    tools: list[dict[str, Any]] | None = None
    tool_choice: Union[str, dict[str, Any], None] = None
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    top_k: int | None = Field(default=None, ge=1)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    repetition_penalty: float | None = Field(default=None, ge=0.0, le=2.0)
    stop: Union[str, list[str], None] = None
    logit_bias: dict[str, float] | None = None
    seed: int | None = None
    user: str | None = None

    def with_streaming(self) -> "ChatCompletionRequest":
        return self.model_copy(update={"stream": True})

    def with_model(self, model: str) -> "ChatCompletionRequest":
        return self.model_copy(update={"model": model})

    def with_temperature(self, temperature: float) -> "ChatCompletionRequest":
        return self.model_validate({**self.model_dump(), "temperature": temperature})

    def with_max_tokens(self, max_tokens: int) -> "ChatCompletionRequest":
        return self.model_validate({**self.model_dump(), "max_tokens": max_tokens})

    def to_payload(self) -> dict[str, Any]:
        """JSON body for POST /chat/completions."""
        payload = self.model_dump(exclude_none=True)
        if not self.stream:
            payload.pop("stream", None)
        return payload


class ChatUsage(BaseModel):
    """Token accounting reported by the API."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatChoice(BaseModel):
    index: int = 0
    message: dict[str, Any] = Field(default_factory=dict)
    finish_reason: str | None = None
    logprobs: dict[str, Any] | None = None


class ChatCompletionResponse(BaseModel):
    """
    The decoded result of a non-streaming chat completion.
    """

    model_config = ConfigDict(extra="allow")

    id: str = ""
    object: str = "chat.completion"
    created: int = 0
    model: str = ""
    choices: list[ChatChoice] = Field(default_factory=list)
    usage: ChatUsage | None = None
    system_fingerprint: str | None = None

    @property
    def content(self) -> str:
        """Text of the first choice, or "" when there is none."""
        if not self.choices:
            return ""
        content = self.choices[0].message.get("content")
        return content if isinstance(content, str) else ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "ChatCompletionResponse":
        return cls.model_validate(data)
