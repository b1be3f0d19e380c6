"""
Completion backend for prompt-driven operations.

This module provides the interface every component uses to send a single
user-role prompt to a hosted language model and get text back, plus the
Anthropic implementation of it. Calls are never retried.
"""

import logging
import os
from typing import Optional, Protocol

import anthropic
import httpx

from .config import DEFAULT_MODEL, WriterConfig
from .models import ErrorType, OperationResult

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Raised when LLM operations fail."""
    pass


class CompletionBackend(Protocol):
    """Anything that turns a prompt into text wrapped in an OperationResult."""

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ) -> OperationResult:
        """Return ``OperationResult`` with ``data["text"]`` on success."""
        ...


def _backend_message(error: Exception) -> str:
    """Pull the human-readable message out of an API error envelope."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error")
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    return getattr(error, "message", None) or str(error)


class LLMClient:
    """
    Completion backend on the Anthropic Messages API.

    A missing API key is reported as a configuration failure before any
    network activity.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
    ):
        """
        Initialize the LLM client.

        Args:
            api_key: API key for the LLM provider. If None, reads from ANTHROPIC_API_KEY env var.
            model: Model identifier to use.
        """
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model = model
        self._client: Optional[anthropic.Anthropic] = None

    @property
    def client(self) -> anthropic.Anthropic:
        if self._client is None:
            if not self.api_key:
                raise LLMClientError(
                    "No API key provided. Set ANTHROPIC_API_KEY environment variable "
                    "or pass api_key parameter."
                )
            http_client = httpx.Client(
                timeout=httpx.Timeout(60.0, connect=30.0),
                follow_redirects=True,
            )
            self._client = anthropic.Anthropic(
                api_key=self.api_key,
                http_client=http_client,
                max_retries=0,
            )
        return self._client

    def complete(
        self,
        prompt: str,
        *,
        max_tokens: int = 2000,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ) -> OperationResult:
        """
        Send a single user-role prompt and return the completion text.

        Args:
            prompt: Full instruction prompt, including any response-format hint.
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.
            timeout: Per-call network timeout in seconds.

        Returns:
            OperationResult with ``text`` on success.
        """
        if not self.api_key:
            return OperationResult.fail("API key not configured", ErrorType.CONFIGURATION)

        try:
            text = self._create_message(prompt, max_tokens, temperature, timeout)
        except LLMClientError as e:
            logger.error(f"Completion failed: {e}")
            return OperationResult.fail(str(e), ErrorType.BACKEND)

        if not text.strip():
            return OperationResult.fail("Invalid response from completion backend", ErrorType.BACKEND)
        return OperationResult.ok("Completion received", text=text)

    def _create_message(
        self,
        prompt: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
    ) -> str:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise LLMClientError(_backend_message(e))
        except httpx.HTTPError as e:
            raise LLMClientError(f"HTTP error: {e}")

        if not response.content:
            return ""
        return getattr(response.content[0], "text", "") or ""


def create_llm_client(config: Optional[WriterConfig] = None) -> LLMClient:
    """
    Factory function to create an LLM client.

    Args:
        config: Configuration supplying the key and model. Defaults come from the environment.

    Returns:
        Configured LLMClient instance.
    """
    config = config or WriterConfig()
    return LLMClient(api_key=config.api_key, model=config.model)
