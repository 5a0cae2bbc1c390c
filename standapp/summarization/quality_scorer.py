"""
Deterministic quality checks for raw model output.

Every check is non-throwing: undecodable or mis-shaped output simply fails
the check.
"""

import logging
import re
from typing import AbstractSet, Any, FrozenSet, List, Optional

from ..models.summary import PromptMode, QualityScores
from .response_parser import load_json

logger = logging.getLogger(__name__)


class QualityScorer:
    """Scores raw output against the set of known-valid commit IDs."""

    REQUIRED_HEADINGS = ("## Yesterday", "## Today", "## Blockers")

    COMMIT_HASH_PATTERN = re.compile(r"[0-9a-f]{7,40}", re.IGNORECASE)
    ID_FIELD_PATTERN = re.compile(
        r'(?:"id"\s*:\s*"([0-9a-f]{7,40})")|(?:ID:\s*([0-9a-f]{7,40}))',
        re.IGNORECASE,
    )

    # Checks counted per mode: the mode-specific checks plus the two ID checks
    TOTAL_CHECKS = {
        PromptMode.SUMMARY: 3,
        PromptMode.JSON: 4,
    }

    @classmethod
    def score(cls, output: str, mode: PromptMode, known_ids: AbstractSet[str]) -> QualityScores:
        """Run every check applicable to the mode and aggregate the results.

        Args:
            output: Raw model output
            mode: Prompt mode the output was generated for
            known_ids: Commit IDs present in the input records

        Returns:
            QualityScores with only the mode's fields populated
        """
        json_parseable: Optional[bool] = None
        json_schema_compliant: Optional[bool] = None
        headings_present: Optional[bool] = None

        if mode is PromptMode.JSON:
            json_parseable = cls.is_json_parseable(output)
            json_schema_compliant = cls.is_json_schema_compliant(output)
            mode_checks = [json_parseable, json_schema_compliant]
        else:
            headings_present = cls.has_required_headings(output)
            mode_checks = [headings_present]

        hallucinated = cls.find_hallucinated_ids(output, known_ids)
        all_ids_valid = cls.all_referenced_ids_valid(output)
        no_hallucinated_ids = not hallucinated
        if hallucinated:
            logger.debug(f"Hallucinated IDs in output: {sorted(hallucinated)}")

        checks = mode_checks + [all_ids_valid, no_hallucinated_ids]

        return QualityScores(
            json_parseable=json_parseable,
            json_schema_compliant=json_schema_compliant,
            headings_present=headings_present,
            all_ids_valid=all_ids_valid,
            no_hallucinated_ids=no_hallucinated_ids,
            pass_count=sum(1 for check in checks if check),
            total_checks=cls.TOTAL_CHECKS[mode],
        )

    @staticmethod
    def is_json_parseable(output: str) -> bool:
        """True iff the text decodes as any JSON value."""
        return load_json(output).ok

    @staticmethod
    def is_json_schema_compliant(output: str) -> bool:
        """True iff the text is a standup document with the required fields."""
        decoded = load_json(output)
        if not decoded.ok or not isinstance(decoded.value, dict):
            return False
        obj = decoded.value

        if "date" not in obj or "author" not in obj:
            return False
        if not isinstance(obj.get("blockers"), list):
            return False

        categories = obj.get("categories")
        if not isinstance(categories, list):
            return False
        return all(_is_valid_category(category) for category in categories)

    @classmethod
    def has_required_headings(cls, output: str) -> bool:
        """True iff every required heading appears as a whole trimmed line."""
        lines = {line.strip().lower() for line in output.splitlines()}
        return all(heading.lower() in lines for heading in cls.REQUIRED_HEADINGS)

    @classmethod
    def extract_ids(cls, output: str) -> FrozenSet[str]:
        """Collect IDs from ``"id": "<hex>"`` fields and ``ID: <hex>`` labels."""
        ids: List[str] = []
        for match in cls.ID_FIELD_PATTERN.finditer(output):
            ids.extend(group for group in match.groups() if group)
        return frozenset(ids)

    @classmethod
    def all_referenced_ids_valid(cls, output: str) -> bool:
        """True iff every extracted ID is a commit hash; vacuously true for none."""
        return all(cls.COMMIT_HASH_PATTERN.fullmatch(found) for found in cls.extract_ids(output))

    @classmethod
    def find_hallucinated_ids(cls, output: str, known_ids: AbstractSet[str]) -> FrozenSet[str]:
        """IDs referenced in the output that are not among the known IDs."""
        return cls.extract_ids(output) - frozenset(known_ids)


def _is_valid_category(category: Any) -> bool:
    if not isinstance(category, dict) or "name" not in category:
        return False
    commits = category.get("commits")
    if not isinstance(commits, list):
        return False
    return all(
        isinstance(commit, dict) and "id" in commit and "summary" in commit
        for commit in commits
    )
