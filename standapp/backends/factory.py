"""
Backend construction from settings and a thread-safe registry of backend factories.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from ..config.settings import BackendSettings, BackendType
from ..exceptions import ConfigurationError
from .anthropic_backend import AnthropicBackend
from .base import LLMBackend
from .rest import RestLLMBackend

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], LLMBackend]


def create_backend(backend_type: BackendType, settings: BackendSettings) -> LLMBackend:
    """Build a backend of the given type.

    Raises:
        ConfigurationError: Settings are incomplete for the requested type
    """
    if backend_type == BackendType.REST_API:
        kwargs = {
            "api_key": settings.api_key,
            "request_timeout": settings.request_timeout,
            "connect_timeout": settings.connect_timeout,
            "name": settings.name,
        }
        if settings.base_url:
            kwargs["base_url"] = settings.base_url
        if settings.model:
            kwargs["model"] = settings.model
        return RestLLMBackend(**kwargs)

    if backend_type == BackendType.ANTHROPIC:
        if not settings.api_key:
            raise ConfigurationError(f"Backend {settings.name} needs an API key",
                                     errors=["ANTHROPIC_API_KEY is not set"])
        kwargs = {
            "api_key": settings.api_key,
            "base_url": settings.base_url,
            "default_timeout": settings.request_timeout,
            "name": settings.name,
        }
        if settings.model:
            kwargs["model"] = settings.model
        return AnthropicBackend(**kwargs)

    raise ConfigurationError(f"Unsupported backend type: {backend_type}")


class BackendRegistry:
    """Name -> factory map shared across threads.

    Every operation takes the lock only long enough to touch the map;
    factories run outside it.
    """

    def __init__(self):
        self._factories: Dict[str, BackendFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: BackendFactory) -> None:
        with self._lock:
            if name in self._factories:
                logger.warning(f"Replacing backend factory: {name}")
            self._factories[name] = factory

    def register_settings(self, settings: BackendSettings) -> None:
        """Register a factory that builds the backend described by ``settings``."""
        self.register(settings.name, lambda: create_backend(settings.backend_type, settings))

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._factories.pop(name, None) is not None

    def get(self, name: str) -> Optional[BackendFactory]:
        with self._lock:
            return self._factories.get(name)

    def names(self) -> List[str]:
        """Registered names in registration order."""
        with self._lock:
            return list(self._factories)

    def create(self, name: str) -> LLMBackend:
        factory = self.get(name)
        if factory is None:
            raise KeyError(f"No backend registered under {name!r}")
        return factory()

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._factories

    def __len__(self) -> int:
        with self._lock:
            return len(self._factories)
