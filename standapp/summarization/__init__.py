"""
Summarization engine module for StandApp.

This module turns change records into standup summaries: prompt building,
backend orchestration, output parsing and quality scoring.
"""

from .engine import SummaryEngine
from .formatter import format_commits, format_record
from .prompt_builder import PromptBuilder, DefaultPrompts
from .response_parser import OutputParser, JsonResult, load_json
from .quality_scorer import QualityScorer

__all__ = [
    'SummaryEngine',
    'format_commits',
    'format_record',
    'PromptBuilder',
    'DefaultPrompts',
    'OutputParser',
    'JsonResult',
    'load_json',
    'QualityScorer',
]
