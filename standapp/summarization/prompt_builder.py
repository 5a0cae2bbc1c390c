"""
Prompt generation for standup summarization.
"""

from dataclasses import dataclass
from typing import Sequence

from ..models.base import BaseModel
from ..models.commit import ChangeRecord
from ..models.summary import PromptMode
from .formatter import format_commits


COMMITS_MARKER = "{{commits}}"


class DefaultPrompts:
    """Built-in prompt templates."""

    SYSTEM = "You are a developer assistant that creates concise standup summaries from Git commits."

    SUMMARY_USER = """You are a developer assistant that creates daily standup summaries from Git commits.

Given the following Git commits, produce a concise standup report with exactly these three markdown headings:

## Yesterday
(Summarise work completed based on the commits)

## Today
(Infer planned work as a continuation, or state "Continue work on ...")

## Blockers
(List any obstacles mentioned in commit messages, or "None")

Reference commit IDs where relevant. Be concise and actionable.

Commits:
{{commits}}"""

    JSON_USER = """You are a developer assistant that creates structured standup data from Git commits.

Given the following Git commits, produce a JSON object with this exact structure:
{
  "date": "<YYYY-MM-DD of the most recent commit>",
  "author": "<primary author name>",
  "categories": [
    {
      "name": "<category, e.g. Bug Fixes, Features, Refactoring, CI/Config, Documentation>",
      "commits": [
        {
          "id": "<commit hash from input>",
          "summary": "<one-line summary>",
          "status": "done | in-progress | unknown"
        }
      ]
    }
  ],
  "blockers": ["<any obstacles, or empty array>"]
}

Rules:
- Output ONLY valid JSON, no markdown fences, no extra text.
- Every commit ID must come from the input - do not invent IDs.
- Group commits into logical categories.
- If there are multiple authors, use the most frequent as "author".

Commits:
{{commits}}"""


@dataclass(frozen=True)
class PromptBuilder(BaseModel):
    """Builds system and user prompts for standup summarization.

    Templates are fixed at construction time. Each user template must contain
    the ``{{commits}}`` marker exactly once; it is replaced verbatim with the
    formatted change records.
    """
    system_prompt: str = DefaultPrompts.SYSTEM
    summary_template: str = DefaultPrompts.SUMMARY_USER
    json_template: str = DefaultPrompts.JSON_USER

    def __post_init__(self):
        for name, template in (("summary_template", self.summary_template),
                               ("json_template", self.json_template)):
            count = template.count(COMMITS_MARKER)
            if count != 1:
                raise ValueError(
                    f"{name} must contain {COMMITS_MARKER} exactly once, found {count}"
                )

    def template_for(self, mode: PromptMode) -> str:
        """Select the user template for a prompt mode."""
        if mode is PromptMode.JSON:
            return self.json_template
        return self.summary_template

    def build_user_prompt(self, records: Sequence[ChangeRecord], mode: PromptMode) -> str:
        """Build the user prompt with formatted records substituted in.

        Args:
            records: Change records in the order they should appear
            mode: Selects the summary or JSON template

        Returns:
            The template with the marker replaced once
        """
        return self.template_for(mode).replace(COMMITS_MARKER, format_commits(records), 1)

    def build_system_prompt(self) -> str:
        """Return the system instruction unchanged."""
        return self.system_prompt

    def build_prompt(self, records: Sequence[ChangeRecord], mode: PromptMode) -> str:
        """Build the full prompt sent to a backend: system, blank line, user."""
        return f"{self.build_system_prompt()}\n\n{self.build_user_prompt(records, mode)}"

    def estimate_token_count(self, text: str) -> int:
        """Rough token estimate (1 token ~ 4 characters)."""
        return len(text) // 4
