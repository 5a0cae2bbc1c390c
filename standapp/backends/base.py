"""
Text-generation backend contract.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator

from ..models.summary import GenerationConfig

logger = logging.getLogger(__name__)


async def close_stream(stream: AsyncIterator[str]):
    """Close a fragment stream if it supports ``aclose`` (async generators do)."""
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


class LLMBackend(ABC):
    """A text-generation engine.

    Implementations raise ``BackendError`` (or a subclass) for transport,
    timeout and inference failures. Engines holding non-reentrant state must
    serialize their own calls, e.g. by wrapping themselves in
    ``SerializedBackend``.
    """

    name: str = "backend"

    @abstractmethod
    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        """Generate the full completion for a prompt."""

    async def generate_stream(self, prompt: str, config: GenerationConfig) -> AsyncIterator[str]:
        """Generate a completion as fragments in emission order.

        The default yields the ``generate`` result as a single fragment.
        """
        yield await self.generate(prompt, config)

    async def close(self):
        """Release any held resources."""


class SerializedBackend(LLMBackend):
    """Wraps a backend so at most one generate/stream call runs at a time.

    The lock is held for the whole lifetime of a stream and released when the
    stream finishes, fails or is closed early.
    """

    def __init__(self, inner: LLMBackend):
        self.inner = inner
        self.name = inner.name
        self._lock = asyncio.Lock()

    async def generate(self, prompt: str, config: GenerationConfig) -> str:
        async with self._lock:
            return await self.inner.generate(prompt, config)

    async def generate_stream(self, prompt: str, config: GenerationConfig) -> AsyncIterator[str]:
        async with self._lock:
            stream = self.inner.generate_stream(prompt, config)
            try:
                async for fragment in stream:
                    yield fragment
            finally:
                await close_stream(stream)

    async def close(self):
        await self.inner.close()
