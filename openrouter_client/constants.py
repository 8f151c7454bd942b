# openrouter_client/constants.py
"""
Default constants for the OpenRouter client.
All tunable values are centralised here so they can be overridden via ClientConfig
without touching internal logic.
"""

# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------
DEFAULT_BASE_URL: str = "https://openrouter.ai/api/v1"
CHAT_COMPLETIONS_PATH: str = "/chat/completions"
MODELS_PATH: str = "/models"

ALLOWED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

# ---------------------------------------------------------------------------
# Timeouts
# ---------------------------------------------------------------------------
DEFAULT_TIMEOUT_SECONDS: int = 30
"""Per-request timeout for non-streaming calls."""

MIN_TIMEOUT_SECONDS: int = 1
MAX_TIMEOUT_SECONDS: int = 300

# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------
DEFAULT_MAX_ATTEMPTS: int = 3
"""Total attempts for one logical request, including the first."""

MAX_MAX_ATTEMPTS: int = 10

DEFAULT_BACKOFF_MS: int = 1000
"""Base delay for exponential backoff; also the upper bound of the jitter."""

MAX_BACKOFF_MS: int = 10_000

RATE_LIMIT_FALLBACK_SECONDS: float = 1.0
"""Wait applied to a 429 that carries no usable rate-limit header."""

RATE_LIMIT_MIN_SECONDS: float = 1.0

# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------
HEADER_AUTHORIZATION: str = "Authorization"
HEADER_CONTENT_TYPE: str = "Content-Type"
HEADER_ACCEPT: str = "Accept"
HEADER_REFERER: str = "HTTP-Referer"
HEADER_TITLE: str = "X-Title"
HEADER_RETRY_AFTER: str = "Retry-After"
HEADER_RATELIMIT_RESET: str = "X-RateLimit-Reset"

JSON_CONTENT_TYPE: str = "application/json"
EVENT_STREAM_CONTENT_TYPE: str = "text/event-stream"

# ---------------------------------------------------------------------------
# Server-Sent Events
# ---------------------------------------------------------------------------
SSE_DATA_PREFIX: str = "data:"
SSE_COMMENT_PREFIX: str = ":"
SSE_DONE_SENTINEL: str = "[DONE]"
SSE_ERROR_FINISH_REASON: str = "error"

# ---------------------------------------------------------------------------
# Validation patterns
# ---------------------------------------------------------------------------
API_KEY_PATTERN: str = r"^sk-(or-)?[A-Za-z0-9_-]{32,}$"
"""OpenRouter keys look like sk-or-v1-<hex>; plain sk-<key> is also accepted."""

MODEL_NAME_PATTERN: str = r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.:-]+$"
"""provider/model-name, e.g. openai/gpt-4o or mistralai/mistral-7b-instruct:free."""

VALID_ROLES = frozenset({"system", "user", "assistant", "tool"})

# ---------------------------------------------------------------------------
# Response cache
# ---------------------------------------------------------------------------
DEFAULT_CACHE_TTL_SECONDS: int = 3600
REDIS_PREFIX: str = "openrouter_client"
REDIS_CACHE_KEY_TMPL: str = REDIS_PREFIX + ":completion:{key}"
