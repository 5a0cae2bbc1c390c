"""
Environment variable handling for StandApp benchmark configuration.
"""

import logging
import os
from typing import List, Optional

from dotenv import load_dotenv

from ..models.summary import PromptMode
from .settings import (
    BenchmarkConfig, BackendSettings, BackendType, LogLevel,
    DEFAULT_LOCAL_URL, DEFAULT_LOCAL_MODEL, DEFAULT_CLOUD_MODEL, DEFAULT_ANTHROPIC_MODEL,
    LOCAL_BACKEND_NAME, CLOUD_BACKEND_NAME, ANTHROPIC_BACKEND_NAME
)

logger = logging.getLogger(__name__)


class EnvironmentLoader:
    """Loads configuration from environment variables."""

    @staticmethod
    def load_config(load_env_file: bool = True) -> BenchmarkConfig:
        """Load benchmark configuration from environment variables."""
        if load_env_file:
            # Load .env file if it exists (override=True to prefer .env over shell env)
            load_dotenv(override=True)

        backends = [EnvironmentLoader._load_local_backend()]

        cloud_backend = EnvironmentLoader._load_cloud_backend()
        if cloud_backend:
            backends.append(cloud_backend)
        else:
            logger.warning("BENCH_CLOUD_URL not set - skipping cloud baseline")

        anthropic_backend = EnvironmentLoader._load_anthropic_backend()
        if anthropic_backend:
            backends.append(anthropic_backend)

        # Log level
        log_level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
        log_level = LogLevel.INFO  # default
        try:
            log_level = LogLevel(log_level_str)
        except ValueError:
            logger.warning(f"Unknown LOG_LEVEL {log_level_str!r}, using INFO")

        return BenchmarkConfig(
            bench_dir=os.getenv('BENCH_DIR', 'bench'),
            runs_per_case=EnvironmentLoader._get_int('BENCH_RUNS', 5),
            case_filter=EnvironmentLoader._parse_list(os.getenv('BENCH_CASES', '')),
            prompt_modes=EnvironmentLoader._parse_prompt_modes(os.getenv('BENCH_PROMPTS', 'SUMMARY,JSON')),
            backend_filter=EnvironmentLoader._parse_list(os.getenv('BENCH_BACKENDS', '')),
            backends=backends,
            output_dir=os.getenv('BENCH_OUTPUT_DIR', 'benchmark-results'),
            timeout_seconds=EnvironmentLoader._get_float('BENCH_TIMEOUT', 30.0),
            human_scores_path=os.getenv('BENCH_HUMAN_SCORES') or None,
            log_level=log_level
        )

    @staticmethod
    def _load_local_backend() -> BackendSettings:
        return BackendSettings(
            name=LOCAL_BACKEND_NAME,
            backend_type=BackendType.REST_API,
            base_url=os.getenv('BENCH_LOCAL_URL', DEFAULT_LOCAL_URL),
            model=os.getenv('BENCH_LOCAL_MODEL', DEFAULT_LOCAL_MODEL),
            api_key=os.getenv('BENCH_LOCAL_API_KEY') or None
        )

    @staticmethod
    def _load_cloud_backend() -> Optional[BackendSettings]:
        cloud_url = os.getenv('BENCH_CLOUD_URL')
        if not cloud_url:
            return None
        return BackendSettings(
            name=CLOUD_BACKEND_NAME,
            backend_type=BackendType.REST_API,
            base_url=cloud_url,
            model=os.getenv('BENCH_CLOUD_MODEL', DEFAULT_CLOUD_MODEL),
            api_key=os.getenv('BENCH_CLOUD_API_KEY') or os.getenv('OPENAI_API_KEY') or None
        )

    @staticmethod
    def _load_anthropic_backend() -> Optional[BackendSettings]:
        api_key = os.getenv('ANTHROPIC_API_KEY')
        if not api_key:
            return None
        return BackendSettings(
            name=ANTHROPIC_BACKEND_NAME,
            backend_type=BackendType.ANTHROPIC,
            model=os.getenv('ANTHROPIC_MODEL', DEFAULT_ANTHROPIC_MODEL),
            api_key=api_key
        )

    @staticmethod
    def _parse_list(value: str, delimiter: str = ',') -> List[str]:
        """Parse a comma-separated string into a list."""
        if not value:
            return []
        return [item.strip() for item in value.split(delimiter) if item.strip()]

    @staticmethod
    def _parse_prompt_modes(value: str) -> List[PromptMode]:
        """Parse prompt mode names, ignoring unknown entries."""
        modes = []
        for item in EnvironmentLoader._parse_list(value):
            try:
                mode = PromptMode(item.upper())
            except ValueError:
                logger.warning(f"Ignoring unknown prompt mode: {item}")
                continue
            if mode not in modes:
                modes.append(mode)
        return modes

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning(f"{key}={value!r} is not an integer, using {default}")
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        if not value:
            return default
        try:
            return float(value)
        except ValueError:
            logger.warning(f"{key}={value!r} is not a number, using {default}")
            return default
