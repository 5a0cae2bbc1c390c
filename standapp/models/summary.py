"""
Standup summary data models.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .base import BaseModel


class PromptMode(Enum):
    """Generation target: free text with headings, or a JSON document."""
    SUMMARY = "SUMMARY"
    JSON = "JSON"


class ItemStatus(Enum):
    """Completion status of a summary item."""
    DONE = "DONE"
    IN_PROGRESS = "IN_PROGRESS"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class GenerationConfig(BaseModel):
    """Sampling parameters passed to a backend for one call."""
    max_tokens: int = 512
    temperature: float = 0.1
    top_p: float = 0.9


@dataclass(frozen=True)
class SummaryItem(BaseModel):
    """A single line of a standup section."""
    text: str
    commit_id: Optional[str] = None
    status: ItemStatus = ItemStatus.UNKNOWN


@dataclass(frozen=True)
class SummarySection(BaseModel):
    """A named group of items, e.g. ``Yesterday`` or ``Bug Fixes``."""
    name: str
    items: Tuple[SummaryItem, ...] = ()


@dataclass(frozen=True)
class StandupSummary(BaseModel):
    """Structured standup report parsed from raw model output."""
    raw: str
    mode: PromptMode
    date: str = ""
    author: str = ""
    sections: Tuple[SummarySection, ...] = ()

    def section(self, name: str) -> Optional[SummarySection]:
        """Find the first section with the given name."""
        for section in self.sections:
            if section.name == name:
                return section
        return None


@dataclass(frozen=True)
class QualityScores(BaseModel):
    """Deterministic quality checks for one raw output.

    The mode-specific fields are mutually exclusive: ``json_parseable`` and
    ``json_schema_compliant`` are set only for JSON mode, ``headings_present``
    only for SUMMARY mode.
    """
    all_ids_valid: bool
    no_hallucinated_ids: bool
    pass_count: int
    total_checks: int
    json_parseable: Optional[bool] = None
    json_schema_compliant: Optional[bool] = None
    headings_present: Optional[bool] = None

    @property
    def all_passed(self) -> bool:
        """True when every applicable check passed."""
        return self.pass_count == self.total_checks


@dataclass(frozen=True)
class ScoredResult(BaseModel):
    """A summary together with its quality scores, when scoring ran."""
    summary: StandupSummary
    scores: Optional[QualityScores] = field(default=None)
