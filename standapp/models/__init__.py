"""
Data models module for StandApp.

This module provides the value objects shared by the summarization engine
and the benchmark harness.
"""

from .base import BaseModel
from .commit import ChangeRecord, record_ids
from .summary import (
    PromptMode, ItemStatus, GenerationConfig, SummaryItem, SummarySection,
    StandupSummary, QualityScores, ScoredResult
)
from .progress import (
    ProgressEvent, BuildingPrompt, Generating, Streaming, Parsing, Scoring,
    Complete, Failed, is_terminal
)

__all__ = [
    # Base models
    'BaseModel',

    # Change records
    'ChangeRecord',
    'record_ids',

    # Summary models
    'PromptMode',
    'ItemStatus',
    'GenerationConfig',
    'SummaryItem',
    'SummarySection',
    'StandupSummary',
    'QualityScores',
    'ScoredResult',

    # Progress events
    'ProgressEvent',
    'BuildingPrompt',
    'Generating',
    'Streaming',
    'Parsing',
    'Scoring',
    'Complete',
    'Failed',
    'is_terminal',
]
