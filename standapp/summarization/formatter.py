"""
Plain-text rendering of change records for prompts.
"""

from typing import Sequence

from ..models.commit import ChangeRecord


RECORD_DELIMITER = "---"


def format_record(record: ChangeRecord) -> str:
    """Render one record as its four labelled lines plus delimiter."""
    return (
        f"ID: {record.id}\n"
        f"Author: {record.author_name} <{record.author_email}>\n"
        f"Date: {record.date}\n"
        f"Message: {record.message}\n"
        f"{RECORD_DELIMITER}"
    )


def format_commits(records: Sequence[ChangeRecord]) -> str:
    """Render records in order, joined by newlines.

    An empty sequence yields the empty string.
    """
    return "\n".join(format_record(record) for record in records)
