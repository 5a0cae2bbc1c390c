"""
Text-generation backends for StandApp.
"""

from .base import LLMBackend, SerializedBackend
from .rest import RestLLMBackend, resolve_completions_url
from .anthropic_backend import AnthropicBackend
from .factory import BackendRegistry, create_backend

__all__ = [
    'LLMBackend',
    'SerializedBackend',
    'RestLLMBackend',
    'resolve_completions_url',
    'AnthropicBackend',
    'BackendRegistry',
    'create_backend',
]
