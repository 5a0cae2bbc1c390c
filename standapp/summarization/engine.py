"""
Main summarization engine coordinating prompt building, generation,
parsing and scoring.
"""

import logging
from typing import AsyncIterator, Optional, Sequence

from ..backends.base import LLMBackend, close_stream
from ..models.commit import ChangeRecord, record_ids
from ..models.progress import (
    ProgressEvent, BuildingPrompt, Generating, Streaming, Parsing, Scoring,
    Complete, Failed
)
from ..models.summary import GenerationConfig, PromptMode, ScoredResult, StandupSummary
from .prompt_builder import PromptBuilder
from .quality_scorer import QualityScorer
from .response_parser import OutputParser

logger = logging.getLogger(__name__)


class SummaryEngine:
    """Main engine for standup summarization."""

    def __init__(self,
                 backend: LLMBackend,
                 prompt_builder: Optional[PromptBuilder] = None,
                 config: Optional[GenerationConfig] = None,
                 scoring_enabled: bool = False):
        """Initialize summarization engine.

        Args:
            backend: Text-generation backend
            prompt_builder: Prompt templates (defaults to the built-in ones)
            config: Sampling parameters used for every call
            scoring_enabled: Whether the progress stream runs quality checks
        """
        if backend is None:
            raise ValueError("backend must be set")
        self.backend = backend
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.config = config or GenerationConfig()
        self.scoring_enabled = scoring_enabled

    async def summarize(self, records: Sequence[ChangeRecord], mode: PromptMode) -> StandupSummary:
        """Summarize change records in one backend round-trip.

        Args:
            records: Change records to summarize
            mode: Output mode, selects template and parser

        Returns:
            Parsed standup summary (possibly empty if output was malformed)

        Raises:
            BackendError: The backend failed; not retried
        """
        prompt = self.prompt_builder.build_prompt(records, mode)
        logger.info(
            f"Summarizing {len(records)} commits: mode={mode.value}, backend={self.backend.name}, "
            f"prompt ~{self.prompt_builder.estimate_token_count(prompt)} tokens"
        )

        raw = await self.backend.generate(prompt, self.config)
        logger.debug(f"Backend returned {len(raw)} chars")

        return OutputParser.parse(raw, mode)

    async def summarize_and_score(self, records: Sequence[ChangeRecord], mode: PromptMode) -> ScoredResult:
        """Summarize and always run quality checks against the record IDs."""
        summary = await self.summarize(records, mode)
        scores = QualityScorer.score(summary.raw, mode, record_ids(records))
        logger.info(f"Quality checks: {scores.pass_count}/{scores.total_checks} passed")
        return ScoredResult(summary=summary, scores=scores)

    async def summarize_with_progress(self,
                                      records: Sequence[ChangeRecord],
                                      mode: PromptMode) -> AsyncIterator[ProgressEvent]:
        """Stream progress events for one summarization.

        Emits BuildingPrompt, Generating, zero or more Streaming, Parsing,
        Scoring (only when scoring is enabled) and then exactly one of
        Complete or Failed. Failures while building the prompt or generating
        become Failed; parse and score errors propagate.

        Cancelling the consuming task or closing the generator stops the
        backend stream and emits nothing further.
        """
        try:
            yield BuildingPrompt()
            prompt = self.prompt_builder.build_prompt(records, mode)

            yield Generating()
            accumulated = []
            stream = self.backend.generate_stream(prompt, self.config)
            try:
                async for fragment in stream:
                    accumulated.append(fragment)
                    yield Streaming(delta=fragment, accumulated="".join(accumulated))
            finally:
                await close_stream(stream)
            raw = "".join(accumulated)
        except Exception as e:
            logger.warning(f"Summarization failed during generation: {e}")
            yield Failed(error=e)
            return

        yield Parsing()
        summary = OutputParser.parse(raw, mode)

        scores = None
        if self.scoring_enabled:
            yield Scoring()
            scores = QualityScorer.score(raw, mode, record_ids(records))

        yield Complete(result=ScoredResult(summary=summary, scores=scores))
