# openrouter_client/config.py
"""
ClientConfig and related sub-configs.

Supports construction from:
  - Python dict   → ClientConfig.from_dict(data)
  - YAML file     → ClientConfig.from_yaml("openrouter.yaml")
  - Environment   → ClientConfig.from_env()
"""

from __future__ import annotations

import os
import re
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from .constants import (
    API_KEY_PATTERN,
    DEFAULT_BACKOFF_MS,
    DEFAULT_BASE_URL,
    DEFAULT_CACHE_TTL_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_TIMEOUT_SECONDS,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HEADER_REFERER,
    HEADER_TITLE,
    JSON_CONTENT_TYPE,
    MAX_BACKOFF_MS,
    MAX_MAX_ATTEMPTS,
    MAX_TIMEOUT_SECONDS,
    MIN_TIMEOUT_SECONDS,
    MODEL_NAME_PATTERN,
)

_URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


class RetryConfig(BaseModel):
    """Retry budget for non-streaming requests."""

    max_attempts: int = Field(
        default=DEFAULT_MAX_ATTEMPTS,
        ge=1,
        le=MAX_MAX_ATTEMPTS,
        description="Total attempts per logical request, including the first.",
    )
    backoff_ms: int = Field(
        default=DEFAULT_BACKOFF_MS,
        ge=0,
        le=MAX_BACKOFF_MS,
        description="Base delay for exponential backoff in milliseconds.",
    )


class AppHeaders(BaseModel):
    """
    Application identification headers.

    OpenRouter uses HTTP-Referer and X-Title to attribute traffic to an app
    on its leaderboards. ``extra`` holds any further custom headers.
    """

    http_referer: str = ""
    x_title: str = ""
    extra: dict[str, str] = Field(default_factory=dict)


class CacheConfig(BaseModel):
    """Response cache for non-streaming chat completions."""

    enabled: bool = False
    ttl_seconds: int = Field(default=DEFAULT_CACHE_TTL_SECONDS, gt=0)
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL. If set, completions are cached in Redis instead of in-process.",
    )


class ClientConfig(BaseModel):
    """
    Top-level configuration for the OpenRouter client.

    Instantiate directly or use one of the factory class methods:
      ClientConfig.from_dict(data)
      ClientConfig.from_yaml(path)
      ClientConfig.from_env()
    """

    model_config = {"str_strip_whitespace": True, "frozen": True}

    api_key: str = Field(..., description="OpenRouter API key (sk-or-...).", repr=False)
    base_url: str = Field(default=DEFAULT_BASE_URL)
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        ge=MIN_TIMEOUT_SECONDS,
        le=MAX_TIMEOUT_SECONDS,
        description="Request timeout in seconds for non-streaming calls.",
    )
    default_model: str | None = Field(
        default=None,
        description="Model used when a request does not name one, e.g. 'openai/gpt-4o'.",
    )
    headers: AppHeaders = Field(default_factory=AppHeaders)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v:
            raise ValueError("API key is required")
        if not re.match(API_KEY_PATTERN, v):
            raise ValueError("Invalid API key format. Expected: sk-or-... or sk-...")
        return v

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not _URL_RE.match(v):
            raise ValueError(f"Invalid base URL format: '{v}'")
        return v.rstrip("/")

    @field_validator("default_model")
    @classmethod
    def validate_default_model(cls, v: str | None) -> str | None:
        if not v:
            return None
        if not re.match(MODEL_NAME_PATTERN, v):
            raise ValueError(
                f"Invalid model name format '{v}'. Expected: provider/model-name"
            )
        return v

    # ------------------------------------------------------------------
    # Settings contract consumed by the transport
    # ------------------------------------------------------------------

    def default_headers(self) -> dict[str, str]:
        """Headers sent on every outbound call; empty values are dropped."""
        headers = {
            HEADER_AUTHORIZATION: f"Bearer {self.api_key}",
            HEADER_CONTENT_TYPE: JSON_CONTENT_TYPE,
            HEADER_REFERER: self.headers.http_referer,
            HEADER_TITLE: self.headers.x_title,
            **self.headers.extra,
        }
        return {name: value for name, value in headers.items() if value}

    # ------------------------------------------------------------------
    # Factory methods
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> "ClientConfig":
        """Build config from a plain Python dictionary."""
        merged = {**data, **kwargs}
        return cls.model_validate(merged)

    @classmethod
    def from_yaml(cls, path: str, **kwargs: Any) -> "ClientConfig":
        """
        Build config from a YAML file.

        Environment variable interpolation is supported:
          api_key: "${OPENROUTER_API_KEY}"
        """
        with open(path) as f:
            raw = f.read()

        # Interpolate ${ENV_VAR} placeholders
        def _replace(match: re.Match) -> str:  # type: ignore[type-arg]
            var = match.group(1)
            value = os.environ.get(var)
            if value is None:
                raise EnvironmentError(
                    f"Environment variable '{var}' referenced in '{path}' is not set."
                )
            return value

        raw = re.sub(r"\$\{([^}]+)\}", _replace, raw)
        data = yaml.safe_load(raw) or {}
        return cls.from_dict(data, **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "ClientConfig":
        """
        Build config from environment variables.

        Required:
          OPENROUTER_API_KEY        → api_key

        Optional overrides:
          OPENROUTER_BASE_URL       → base_url
          OPENROUTER_TIMEOUT        → timeout
          OPENROUTER_DEFAULT_MODEL  → default_model
          OPENROUTER_REFERER        → headers.http_referer
          OPENROUTER_TITLE          → headers.x_title
          OPENROUTER_RETRY_ATTEMPTS → retry.max_attempts
          OPENROUTER_RETRY_BACKOFF  → retry.backoff_ms
          OPENROUTER_CACHE_ENABLED  → cache.enabled
          OPENROUTER_CACHE_TTL      → cache.ttl_seconds
          OPENROUTER_REDIS_URL      → cache.redis_url
        """
        env = os.environ
        data: dict[str, Any] = {"api_key": env.get("OPENROUTER_API_KEY", "")}

        _scalars = [
            ("OPENROUTER_BASE_URL", "base_url"),
            ("OPENROUTER_TIMEOUT", "timeout"),
            ("OPENROUTER_DEFAULT_MODEL", "default_model"),
        ]
        for env_var, field in _scalars:
            value = env.get(env_var)
            if value:
                data[field] = value

        headers = {
            "http_referer": env.get("OPENROUTER_REFERER", ""),
            "x_title": env.get("OPENROUTER_TITLE", ""),
        }
        data["headers"] = headers

        retry: dict[str, Any] = {}
        if env.get("OPENROUTER_RETRY_ATTEMPTS"):
            retry["max_attempts"] = int(env["OPENROUTER_RETRY_ATTEMPTS"])
        if env.get("OPENROUTER_RETRY_BACKOFF"):
            retry["backoff_ms"] = int(env["OPENROUTER_RETRY_BACKOFF"])
        if retry:
            data["retry"] = retry

        cache: dict[str, Any] = {}
        if env.get("OPENROUTER_CACHE_ENABLED"):
            cache["enabled"] = env["OPENROUTER_CACHE_ENABLED"].strip().lower() in ("1", "true", "yes", "on")
        if env.get("OPENROUTER_CACHE_TTL"):
            cache["ttl_seconds"] = int(env["OPENROUTER_CACHE_TTL"])
        if env.get("OPENROUTER_REDIS_URL"):
            cache["redis_url"] = env["OPENROUTER_REDIS_URL"]
        if cache:
            data["cache"] = cache

        data.update(kwargs)
        return cls.from_dict(data)
