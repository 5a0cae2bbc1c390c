"""
Model output parsing into structured standup summaries.

Parsing is best-effort and never raises: malformed output yields an empty
summary that still carries the raw text for diagnostics.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..models.summary import (
    PromptMode, ItemStatus, StandupSummary, SummarySection, SummaryItem
)

logger = logging.getLogger(__name__)

BLOCKERS_SECTION = "Blockers"
HEADING_PREFIX = "## "
BULLET_PREFIXES = ("- ", "* ")


@dataclass(frozen=True)
class JsonResult:
    """Outcome of a JSON decode attempt: a value or an error message."""
    value: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def load_json(text: str) -> JsonResult:
    """Decode text as a single JSON value without raising.

    ``NaN`` and ``Infinity`` are rejected. Inputs nested too deeply or holding
    integers past the interpreter's digit limit are reported as errors too.
    """
    try:
        return JsonResult(value=json.loads(text, parse_constant=_reject_constant))
    except (ValueError, TypeError, RecursionError) as e:
        return JsonResult(error=str(e))


class ShapeError(ValueError):
    """Decoded JSON does not have the standup document shape."""


class OutputParser:
    """Parses raw model output into a StandupSummary for either prompt mode."""

    @staticmethod
    def parse(raw: str, mode: PromptMode) -> StandupSummary:
        """Parse raw output according to the prompt mode."""
        if mode is PromptMode.JSON:
            return OutputParser.parse_json(raw)
        return OutputParser.parse_summary(raw)

    @staticmethod
    def parse_summary(raw: str) -> StandupSummary:
        """Scan ``## `` headings and their bullet lines, top to bottom."""
        sections: List[SummarySection] = []
        current_heading: Optional[str] = None
        current_items: List[SummaryItem] = []

        for line in raw.splitlines():
            trimmed = line.strip()
            if trimmed.startswith(HEADING_PREFIX):
                if current_heading is not None:
                    sections.append(SummarySection(current_heading, tuple(current_items)))
                current_heading = trimmed[len(HEADING_PREFIX):].strip()
                current_items = []
            elif current_heading is not None and trimmed:
                text = _strip_bullet(trimmed)
                if text:
                    current_items.append(SummaryItem(text=text))

        if current_heading is not None:
            sections.append(SummarySection(current_heading, tuple(current_items)))

        logger.debug(f"Parsed summary output into {len(sections)} sections")
        return StandupSummary(raw=raw, mode=PromptMode.SUMMARY, sections=tuple(sections))

    @staticmethod
    def parse_json(raw: str) -> StandupSummary:
        """Map a ``{date, author, categories, blockers}`` document to sections.

        Category names are kept as the model wrote them, so a category called
        "Blockers" appears as its own section ahead of the one built from a
        non-empty ``blockers`` list.
        """
        decoded = load_json(raw)
        if not decoded.ok:
            logger.debug(f"JSON output not decodable: {decoded.error}")
            return _empty_json_summary(raw)

        try:
            return _build_json_summary(raw, decoded.value)
        except ShapeError as e:
            logger.debug(f"JSON output has unexpected shape: {e}")
            return _empty_json_summary(raw)

    @staticmethod
    def parse_status(value: Optional[str]) -> ItemStatus:
        """Map a status string case-insensitively; unknown values map to UNKNOWN."""
        normalized = (value or "").strip().lower()
        if normalized == "done":
            return ItemStatus.DONE
        if normalized in ("in-progress", "in_progress"):
            return ItemStatus.IN_PROGRESS
        return ItemStatus.UNKNOWN


def _strip_bullet(text: str) -> str:
    # "- " then "* ", each stripped at most once
    for prefix in BULLET_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix):]
    return text.strip()


def _empty_json_summary(raw: str) -> StandupSummary:
    return StandupSummary(raw=raw, mode=PromptMode.JSON)


def _expect(value: Any, kind: type, where: str) -> Any:
    if not isinstance(value, kind):
        raise ShapeError(f"{where} should be {kind.__name__}, got {type(value).__name__}")
    return value


def _scalar(value: Any, where: str) -> Optional[str]:
    """Read a JSON primitive as text; objects and arrays are shape errors."""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ShapeError(f"{where} should be a primitive")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _build_json_summary(raw: str, data: Any) -> StandupSummary:
    obj = _expect(data, dict, "document")

    sections: List[SummarySection] = []
    categories = obj.get("categories")
    if categories is not None:
        for index, category in enumerate(_expect(categories, list, "categories")):
            cat = _expect(category, dict, f"categories[{index}]")
            items: List[SummaryItem] = []
            commits = cat.get("commits")
            if commits is not None:
                for commit_index, commit in enumerate(_expect(commits, list, "commits")):
                    c = _expect(commit, dict, f"commits[{commit_index}]")
                    items.append(SummaryItem(
                        commit_id=_scalar(c.get("id"), "id"),
                        text=_scalar(c.get("summary"), "summary") or "",
                        status=OutputParser.parse_status(_scalar(c.get("status"), "status")),
                    ))
            sections.append(SummarySection(
                name=_scalar(cat.get("name"), "name") or "",
                items=tuple(items),
            ))

    blockers: List[str] = []
    raw_blockers = obj.get("blockers")
    if raw_blockers is not None:
        for blocker in _expect(raw_blockers, list, "blockers"):
            blockers.append(_scalar(blocker, "blocker") or "")

    if blockers:
        sections.append(SummarySection(
            name=BLOCKERS_SECTION,
            items=tuple(SummaryItem(text=blocker) for blocker in blockers),
        ))

    return StandupSummary(
        raw=raw,
        mode=PromptMode.JSON,
        date=_scalar(obj.get("date"), "date") or "",
        author=_scalar(obj.get("author"), "author") or "",
        sections=tuple(sections),
    )
