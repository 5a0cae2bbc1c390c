"""
Progress events emitted by a streaming summarization call.

``ProgressEvent`` is a closed union; consumers dispatch on the concrete
variant with ``isinstance``. Events live only for the duration of one call.
"""

from dataclasses import dataclass
from typing import Union

from .summary import ScoredResult


@dataclass(frozen=True)
class BuildingPrompt:
    """Prompt construction has started."""


@dataclass(frozen=True)
class Generating:
    """The backend has been invoked."""


@dataclass(frozen=True)
class Streaming:
    """A fragment arrived from the backend."""
    delta: str
    accumulated: str


@dataclass(frozen=True)
class Parsing:
    """Generation finished; raw output is being parsed."""


@dataclass(frozen=True)
class Scoring:
    """Quality checks are running."""


@dataclass(frozen=True)
class Complete:
    """Terminal success event."""
    result: ScoredResult


@dataclass(frozen=True)
class Failed:
    """Terminal failure event for prompt construction or generation errors."""
    error: BaseException


ProgressEvent = Union[BuildingPrompt, Generating, Streaming, Parsing, Scoring, Complete, Failed]

TERMINAL_EVENTS = (Complete, Failed)


def is_terminal(event: ProgressEvent) -> bool:
    """Check whether an event ends the progress sequence."""
    return isinstance(event, TERMINAL_EVENTS)
