"""
Configuration validation for StandApp.
"""

import re
from typing import List

from .settings import BenchmarkConfig, BackendSettings, BackendType
from ..models.summary import GenerationConfig


class ConfigValidator:
    """Validates configuration settings."""

    @staticmethod
    def validate_config(config: BenchmarkConfig) -> List[str]:
        """Validate the entire benchmark configuration."""
        errors = []

        errors.extend(ConfigValidator._validate_numeric_ranges(config))
        errors.extend(ConfigValidator._validate_generation(config.generation))

        if not config.prompt_modes:
            errors.append("At least one prompt mode must be selected (BENCH_PROMPTS)")

        for backend in config.backends:
            errors.extend(ConfigValidator._validate_backend(backend))

        names = [b.name for b in config.backends]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            errors.append(f"Duplicate backend names: {', '.join(duplicates)}")

        return errors

    @staticmethod
    def _validate_numeric_ranges(config: BenchmarkConfig) -> List[str]:
        """Validate numeric configuration values."""
        errors = []

        if config.runs_per_case < 1:
            errors.append("Runs per case must be at least 1")

        if config.timeout_seconds <= 0:
            errors.append("Benchmark timeout must be positive")

        return errors

    @staticmethod
    def _validate_generation(generation: GenerationConfig) -> List[str]:
        """Validate sampling parameters."""
        errors = []

        if generation.max_tokens < 1:
            errors.append("Max tokens must be at least 1")

        if not (0.0 <= generation.temperature <= 2.0):
            errors.append(f"Temperature {generation.temperature} must be between 0.0 and 2.0")

        if not (0.0 < generation.top_p <= 1.0):
            errors.append(f"top_p {generation.top_p} must be in (0.0, 1.0]")

        return errors

    @staticmethod
    def _validate_backend(backend: BackendSettings) -> List[str]:
        """Validate a single backend's settings."""
        errors = []

        if not backend.name:
            errors.append("Backend name must not be empty")

        if backend.backend_type == BackendType.REST_API:
            if not backend.base_url:
                errors.append(f"Backend {backend.name}: base URL is required for REST_API")
            elif not ConfigValidator._is_valid_url(backend.base_url):
                errors.append(f"Backend {backend.name}: invalid base URL {backend.base_url}")

        if backend.backend_type == BackendType.ANTHROPIC and not backend.api_key:
            errors.append(f"Backend {backend.name}: API key is required for ANTHROPIC")

        if backend.request_timeout <= 0:
            errors.append(f"Backend {backend.name}: request timeout must be positive")

        if backend.connect_timeout <= 0:
            errors.append(f"Backend {backend.name}: connect timeout must be positive")

        return errors

    @staticmethod
    def _is_valid_url(url: str) -> bool:
        url_pattern = r'^https?://[a-zA-Z0-9.-]+(?::[0-9]+)?(?:/.*)?$'
        return bool(re.match(url_pattern, url))
