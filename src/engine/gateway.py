"""
Model Gateway.

Sends a role-tagged conversation to an OpenRouter-compatible chat-completions
endpoint and returns the raw text of the first choice.

Usage:
    gateway = ModelGateway(GatewayConfig.from_settings())
    text = gateway.generate(
        [Message("system", "..."), Message("user", "...")],
        GenerationOptions(model="google/gemini-3-pro-preview", temperature=0.7),
    )

One network call per ``generate``; no retries and no local state. Retry policy
belongs to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Protocol, Sequence

import httpx
from loguru import logger

from config import Settings, get_settings
from src.engine.errors import GatewayRejected, GatewayUnavailable, InvalidInput

Role = Literal["system", "user", "assistant"]
ROLES: frozenset[str] = frozenset({"system", "user", "assistant"})


@dataclass(frozen=True)
class Message:
    """One message of a conversation."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options for a single call."""

    model: str | None = None  # Falls back to GatewayConfig.model
    temperature: float = 0.7
    max_tokens: int = 4096

    def validate(self) -> None:
        if not 0.0 <= self.temperature <= 1.0:
            raise InvalidInput(f"temperature must be within [0, 1], got {self.temperature}")
        if self.max_tokens <= 0:
            raise InvalidInput(f"max_tokens must be positive, got {self.max_tokens}")


@dataclass(frozen=True)
class GatewayConfig:
    """Explicit gateway configuration, injected at construction."""

    api_key: str | None
    base_url: str = "https://openrouter.ai/api/v1"
    model: str = "google/gemini-3-pro-preview"
    app_url: str = "http://localhost:3000"
    app_title: str = "OpenLesson"
    timeout: float | None = None

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GatewayConfig:
        settings = settings or get_settings()
        return cls(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            model=settings.ai_model,
            app_url=settings.app_url,
            app_title=settings.app_title,
            timeout=settings.ai_request_timeout,
        )


class TextGenerator(Protocol):
    """Anything that turns a conversation into raw text."""

    def generate(self, messages: Sequence[Message], options: GenerationOptions) -> str: ...


class ModelGateway:
    """HTTP client for the chat-completions endpoint."""

    def __init__(self, config: GatewayConfig, http_client: httpx.Client | None = None):
        """
        Initialize the gateway.

        Args:
            config: Credential, endpoint and default model
            http_client: Optional pre-built client (tests pass one with a MockTransport)
        """
        self.config = config
        self._client = http_client

    @property
    def client(self) -> httpx.Client:
        """Lazy-load the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url.rstrip("/"),
                timeout=httpx.Timeout(self.config.timeout),
            )
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> ModelGateway:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
            "HTTP-Referer": self.config.app_url,
            "X-Title": self.config.app_title,
        }

    def generate(self, messages: Sequence[Message], options: GenerationOptions) -> str:
        """
        Send a conversation and return the raw completion text.

        Raises:
            GatewayUnavailable: No credential, or the request could not complete
            GatewayRejected: Upstream returned a non-success status or an unreadable body
            InvalidInput: Malformed messages or options
        """
        if not self.config.has_credential:
            raise GatewayUnavailable("OPENROUTER_API_KEY is not set")

        options.validate()
        for message in messages:
            if message.role not in ROLES:
                raise InvalidInput(f"Unknown message role: {message.role!r}")

        payload = {
            "model": options.model or self.config.model,
            "messages": [m.to_dict() for m in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
        }

        logger.debug(
            f"Calling model {payload['model']} "
            f"(messages={len(messages)}, temperature={options.temperature})"
        )
        try:
            response = self.client.post(
                "/chat/completions",
                json=payload,
                headers=self._headers(),
            )
        except httpx.RequestError as e:
            logger.warning(f"Model API request failed: {e}")
            raise GatewayUnavailable(f"Model API request failed: {e}") from e

        if not response.is_success:
            logger.warning(f"Model API returned {response.status_code}")
            raise GatewayRejected(response.text, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayRejected(
                f"Unreadable response body: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

        return self._first_choice_text(data)

    @staticmethod
    def _first_choice_text(data: Any) -> str:
        """Return choices[0].message.content, or "" when absent."""
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        return content if isinstance(content, str) else ""
