"""
Anthropic Messages API backend.
"""

import logging
from typing import AsyncIterator, Optional

import anthropic
from anthropic import AsyncAnthropic

from ..config.settings import DEFAULT_ANTHROPIC_MODEL
from ..exceptions import BackendError, BackendTimeoutError, BackendUnavailableError
from ..models.summary import GenerationConfig
from .base import LLMBackend

logger = logging.getLogger(__name__)


class AnthropicBackend(LLMBackend):
    """Backend for Claude models via the Anthropic SDK.

    The whole prompt is sent as a single user message; the engine already
    folds the system instruction into it.
    """

    def __init__(self, api_key: str,
                 model: str = DEFAULT_ANTHROPIC_MODEL,
                 base_url: Optional[str] = None,
                 default_timeout: float = 120.0,
                 name: Optional[str] = None):
        """Initialize Anthropic backend.

        Args:
            api_key: Anthropic API key
            model: Model identifier
            base_url: Optional custom base URL
            default_timeout: Request timeout in seconds
            name: Display name used in logs and errors
        """
        self.model = model
        self.default_timeout = default_timeout
        self.name = name or f"anthropic:{model}"

        if api_key and len(api_key) > 10:
            masked_key = f"{api_key[:10]}...{api_key[-4:]}"
            logger.info(f"AnthropicBackend initialized with API key: {masked_key}, base_url: {base_url}")

        client_kwargs = {"api_key": api_key, "timeout": default_timeout, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = AsyncAnthropic(**client_kwargs)

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        try:
            response = await self._client.messages.create(**self._build_request_params(prompt, config))
        except anthropic.APIError as e:
            raise self._translate_error(e)

        parts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not parts:
            raise BackendError("Anthropic returned no text content", backend=self.name,
                               error_code="EMPTY_COMPLETION", retryable=False)

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"Anthropic usage: {getattr(usage, 'input_tokens', 0)} in + "
                f"{getattr(usage, 'output_tokens', 0)} out, stop_reason={response.stop_reason}"
            )
        return "".join(parts)

    async def generate_stream(self, prompt: str, config: GenerationConfig) -> AsyncIterator[str]:
        try:
            async with self._client.messages.stream(**self._build_request_params(prompt, config)) as stream:
                async for text in stream.text_stream:
                    yield text
        except anthropic.APIError as e:
            raise self._translate_error(e)

    async def close(self):
        await self._client.close()

    def _build_request_params(self, prompt: str, config: GenerationConfig) -> dict:
        return {
            "model": self.model,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "top_p": config.top_p,
            "messages": [{"role": "user", "content": prompt}],
        }

    def _translate_error(self, error: Exception) -> BackendError:
        """Map Anthropic SDK errors onto the backend error hierarchy."""
        if isinstance(error, anthropic.APITimeoutError):
            return BackendTimeoutError(self.name, self.default_timeout, cause=error)
        if isinstance(error, anthropic.APIConnectionError):
            return BackendUnavailableError(self.name, str(error), cause=error)
        if isinstance(error, anthropic.APIStatusError):
            return BackendUnavailableError(self.name, str(error),
                                           status_code=error.status_code, cause=error)
        return BackendError(f"Unexpected Anthropic error: {error}", backend=self.name, cause=error)
