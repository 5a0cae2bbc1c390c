"""
OpenAI-compatible chat-completions backend over HTTP.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from ..exceptions import BackendError, BackendTimeoutError, BackendUnavailableError
from ..models.summary import GenerationConfig
from .base import LLMBackend

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant that creates concise standup summaries from git commit data."
SSE_DATA_PREFIX = "data: "
SSE_DONE = "[DONE]"


def resolve_completions_url(base_url: str) -> str:
    """Normalize a base URL to the chat-completions endpoint."""
    normalized = base_url.rstrip("/")
    if normalized.endswith("/v1/chat/completions") or normalized.endswith("/chat/completions"):
        return normalized
    if normalized.endswith("/v1"):
        return f"{normalized}/chat/completions"
    return f"{normalized}/v1/chat/completions"


class RestLLMBackend(LLMBackend):
    """Backend for any server speaking the OpenAI chat-completions API
    (Ollama, LM Studio, llama.cpp server, OpenAI itself)."""

    def __init__(self,
                 base_url: str = "http://localhost:11434",
                 model: str = "llama3.2:3b",
                 api_key: Optional[str] = None,
                 request_timeout: float = 120.0,
                 connect_timeout: float = 10.0,
                 system_prompt: str = DEFAULT_SYSTEM_PROMPT,
                 name: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize REST backend.

        Args:
            base_url: Server base URL or full completions URL
            model: Model identifier sent with every request
            api_key: Optional Bearer token
            request_timeout: Read/write timeout in seconds
            connect_timeout: Connection timeout in seconds
            system_prompt: System message sent ahead of the prompt
            name: Display name used in logs and errors
            transport: Optional httpx transport (used for testing)
        """
        self.base_url = base_url
        self.model = model
        self.api_key = api_key
        self.request_timeout = request_timeout
        self.system_prompt = system_prompt
        self.name = name or f"rest:{model}"
        self.url = resolve_completions_url(base_url)

        client_kwargs: Dict[str, Any] = {
            "timeout": httpx.Timeout(request_timeout, connect=connect_timeout),
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        self._client = httpx.AsyncClient(**client_kwargs)

        logger.info(f"RestLLMBackend initialized: url={self.url}, model={model}, auth={'yes' if api_key else 'no'}")

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        payload = self._build_payload(prompt, config, stream=False)

        try:
            response = await self._client.post(self.url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(self.name, self.request_timeout, cause=e)
        except httpx.RequestError as e:
            raise BackendUnavailableError(self.name, str(e), cause=e)

        if not response.is_success:
            raise BackendUnavailableError(
                self.name,
                f"REST API returned {response.status_code}: {response.text[:500]}",
                status_code=response.status_code
            )

        try:
            data = response.json()
            choices = data.get("choices") or []
        except (ValueError, AttributeError) as e:
            raise BackendError(f"Malformed completion response: {e}", backend=self.name, cause=e)

        if not choices:
            raise BackendError("REST API returned empty choices", backend=self.name,
                               error_code="EMPTY_COMPLETION", retryable=False)

        content = (choices[0].get("message") or {}).get("content")
        if content is None:
            raise BackendError("REST API returned a choice without content", backend=self.name,
                               error_code="EMPTY_COMPLETION", retryable=False)
        return content

    async def generate_stream(self, prompt: str, config: GenerationConfig) -> AsyncIterator[str]:
        payload = self._build_payload(prompt, config, stream=True)

        try:
            async with self._client.stream("POST", self.url, json=payload, headers=self._headers()) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise BackendUnavailableError(
                        self.name,
                        f"REST API returned {response.status_code}: {body[:500]}",
                        status_code=response.status_code
                    )

                async for line in response.aiter_lines():
                    if not line.startswith(SSE_DATA_PREFIX):
                        continue
                    data = line[len(SSE_DATA_PREFIX):].strip()
                    if data == SSE_DONE:
                        break
                    delta = self._extract_delta(data)
                    if delta is not None:
                        yield delta
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(self.name, self.request_timeout, cause=e)
        except httpx.RequestError as e:
            raise BackendUnavailableError(self.name, str(e), cause=e)

    async def close(self):
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_payload(self, prompt: str, config: GenerationConfig, stream: bool) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": prompt},
        ]
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": config.max_tokens,
            "temperature": config.temperature,
            "top_p": config.top_p,
        }
        if stream:
            payload["stream"] = True
        return payload

    @staticmethod
    def _extract_delta(data: str) -> Optional[str]:
        """Pull ``choices[0].delta.content`` from an SSE chunk; None if absent."""
        try:
            chunk = json.loads(data)
            choices = chunk.get("choices") or []
            if not choices:
                return None
            return (choices[0].get("delta") or {}).get("content")
        except (json.JSONDecodeError, AttributeError, TypeError):
            logger.debug(f"Skipping undecodable stream chunk: {data[:100]}")
            return None
