"""
Configuration settings objects for StandApp.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..models.base import BaseModel
from ..models.summary import GenerationConfig, PromptMode

DEFAULT_LOCAL_URL = "http://localhost:1234"
DEFAULT_LOCAL_MODEL = "tinyllama-1.1b-chat-v1.0"
DEFAULT_CLOUD_MODEL = "gpt-4o-mini"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-haiku-latest"

LOCAL_BACKEND_NAME = "REST_API (local)"
CLOUD_BACKEND_NAME = "REST_API (cloud)"
ANTHROPIC_BACKEND_NAME = "ANTHROPIC (cloud)"


class LogLevel(Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BackendType(Enum):
    """Kinds of text-generation backend the factory can build."""
    REST_API = "REST_API"
    ANTHROPIC = "ANTHROPIC"


@dataclass
class BackendSettings(BaseModel):
    """Connection settings for one backend."""
    name: str
    backend_type: BackendType = BackendType.REST_API
    base_url: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: float = 120.0
    connect_timeout: float = 10.0


@dataclass
class BenchmarkConfig(BaseModel):
    """Everything a benchmark run needs."""
    bench_dir: str = "bench"
    runs_per_case: int = 5
    case_filter: List[str] = field(default_factory=list)
    prompt_modes: List[PromptMode] = field(default_factory=lambda: [PromptMode.SUMMARY, PromptMode.JSON])
    backend_filter: List[str] = field(default_factory=list)
    backends: List[BackendSettings] = field(default_factory=list)
    output_dir: str = "benchmark-results"
    timeout_seconds: float = 30.0
    human_scores_path: Optional[str] = None
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    log_level: LogLevel = LogLevel.INFO

    def selected_backends(self) -> List[BackendSettings]:
        """Backends that pass ``backend_filter`` (case-insensitive substring match on name).

        The REST cloud baseline is always kept so local results have something
        to be compared against.
        """
        if not self.backend_filter:
            return list(self.backends)
        wanted = [f.lower() for f in self.backend_filter]
        return [
            b for b in self.backends
            if b.name == CLOUD_BACKEND_NAME or any(w in b.name.lower() for w in wanted)
        ]
