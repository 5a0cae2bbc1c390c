"""
Configuration management module for StandApp.
"""

from .settings import BenchmarkConfig, BackendSettings, BackendType, LogLevel
from .environment import EnvironmentLoader
from .validation import ConfigValidator

__all__ = [
    'BenchmarkConfig',
    'BackendSettings',
    'BackendType',
    'LogLevel',
    'EnvironmentLoader',
    'ConfigValidator',
]
