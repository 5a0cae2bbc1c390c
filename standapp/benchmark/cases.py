"""
Benchmark case files: one JSON document per case, camelCase keys.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..exceptions import CaseLoadError
from ..models.commit import ChangeRecord
from ..summarization.quality_scorer import QualityScorer

logger = logging.getLogger(__name__)

CASE_FILE_PATTERN = "case-*.json"


class CaseModel(BaseModel):
    """Shared pydantic config: accept snake or camel keys, ignore unknown keys."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CaseCommit(CaseModel):
    """A commit as written in a case file."""
    id: str
    author_name: str = Field(alias="authorName")
    author_email: str = Field(alias="authorEmail")
    when_date: str = Field(alias="whenDate")
    message: str

    def to_record(self) -> ChangeRecord:
        return ChangeRecord(
            id=self.id,
            author_name=self.author_name,
            author_email=self.author_email,
            date=self.when_date,
            message=self.message
        )


class SummaryExpectations(CaseModel):
    """What a reviewer expects from Summary-mode output."""
    required_headings: List[str] = Field(
        default_factory=lambda: list(QualityScorer.REQUIRED_HEADINGS), alias="requiredHeadings"
    )
    must_mention_ids: List[str] = Field(default_factory=list, alias="mustMentionIds")
    forbidden_ids: List[str] = Field(default_factory=list, alias="forbiddenIds")
    notes: str = ""


class JsonExpectations(CaseModel):
    """What a reviewer expects from Json-mode output."""
    must_parse_as_json: bool = Field(default=True, alias="mustParseAsJson")
    expected_categories: List[str] = Field(default_factory=list, alias="expectedCategories")
    expected_commit_count: int = Field(default=-1, alias="expectedCommitCount")  # -1 means any
    notes: str = ""


class CaseExpectations(CaseModel):
    summary: SummaryExpectations = Field(default_factory=SummaryExpectations)
    json_: JsonExpectations = Field(default_factory=JsonExpectations, alias="json")


class BenchmarkCase(CaseModel):
    """A named set of commits plus reviewer expectations."""
    id: str
    description: str = ""
    commits: List[CaseCommit] = Field(default_factory=list)
    expectations: CaseExpectations = Field(default_factory=CaseExpectations)

    def records(self) -> List[ChangeRecord]:
        return [commit.to_record() for commit in self.commits]


class BenchmarkCaseLoader:
    """Loads benchmark cases from JSON files."""

    @staticmethod
    def load(path) -> BenchmarkCase:
        """Load a single case file.

        Raises:
            CaseLoadError: The file is unreadable, not JSON or fails validation
        """
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise CaseLoadError(str(path), f"cannot read file: {e}", cause=e)
        except json.JSONDecodeError as e:
            raise CaseLoadError(str(path), f"invalid JSON: {e}", cause=e)

        try:
            return BenchmarkCase.model_validate(data)
        except ValidationError as e:
            raise CaseLoadError(str(path), f"invalid case: {e}", cause=e)

    @staticmethod
    def load_all(directory, case_filter: Optional[Sequence[str]] = None) -> List[BenchmarkCase]:
        """Load every ``case-*.json`` file in a directory, sorted by file name.

        Args:
            directory: Directory holding the case files
            case_filter: Optional case IDs to keep; empty keeps all

        Raises:
            CaseLoadError: The directory is missing or a case file is invalid
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise CaseLoadError(str(directory), "benchmark directory not found")

        cases = [BenchmarkCaseLoader.load(p) for p in sorted(directory.glob(CASE_FILE_PATTERN))]

        if case_filter:
            wanted = set(case_filter)
            cases = [case for case in cases if case.id in wanted]

        logger.info(f"Loaded {len(cases)} benchmark cases from {directory}")
        return cases
