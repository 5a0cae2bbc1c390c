"""
Change records fed into standup summaries.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable

from .base import BaseModel


@dataclass(frozen=True)
class ChangeRecord(BaseModel):
    """A single commit as supplied by the change-record source.

    ``date`` is kept as the string the source produced; it is rendered into
    prompts verbatim.
    """
    id: str
    author_name: str
    author_email: str
    date: str
    message: str


def record_ids(records: Iterable[ChangeRecord]) -> FrozenSet[str]:
    """Collect the trusted ID set for a batch of records."""
    return frozenset(record.id for record in records)
