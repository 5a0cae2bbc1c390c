"""
Benchmark orchestration: calls each backend over every case, prompt mode and
repetition, and collects scored results.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..backends.base import LLMBackend
from ..exceptions import BackendTimeoutError
from ..models.commit import record_ids
from ..models.summary import GenerationConfig, PromptMode
from ..summarization.prompt_builder import PromptBuilder
from ..summarization.quality_scorer import QualityScorer
from .cases import BenchmarkCase
from .reporting import BackendSummary, CaseResult, Reporting

logger = logging.getLogger(__name__)

BackendFactory = Callable[[], LLMBackend]


@dataclass
class BackendTally:
    """Per-backend counters for calls that produced no result."""
    timeouts: int = 0
    errors: int = 0
    skipped_reason: Optional[str] = None


@dataclass
class BenchmarkRun:
    """Everything a finished benchmark produced."""
    results: List[CaseResult] = field(default_factory=list)
    tallies: Dict[str, BackendTally] = field(default_factory=dict)

    def summaries(self) -> List[BackendSummary]:
        return Reporting.build_summaries(self.results)


class BenchmarkRunner:
    """Runs benchmark cases against backends sequentially.

    Iteration order is backends -> cases -> modes -> runs. A call that exceeds
    ``timeout_seconds`` is counted as a timeout, a call that raises is counted
    as an error; neither produces a result and neither stops the run.
    """

    def __init__(self,
                 cases: Sequence[BenchmarkCase],
                 backends: Sequence[Tuple[str, BackendFactory]],
                 runs_per_case: int = 5,
                 prompt_modes: Sequence[PromptMode] = (PromptMode.SUMMARY, PromptMode.JSON),
                 timeout_seconds: float = 30.0,
                 config: Optional[GenerationConfig] = None,
                 prompt_builder: Optional[PromptBuilder] = None,
                 clock: Callable[[], float] = time.perf_counter):
        """Initialize the runner.

        Args:
            cases: Benchmark cases to run
            backends: (name, factory) pairs; factories are called lazily, one
                backend at a time, and a raising factory skips that backend
            runs_per_case: Repetitions per case and mode
            prompt_modes: Modes to evaluate
            timeout_seconds: Deadline for each backend call
            config: Sampling parameters for every call
            prompt_builder: Prompt templates (defaults to the built-in ones)
            clock: Monotonic clock in seconds
        """
        if runs_per_case < 1:
            raise ValueError("runs_per_case must be at least 1")
        self.cases = list(cases)
        self.backends = list(backends)
        self.runs_per_case = runs_per_case
        self.prompt_modes = list(prompt_modes)
        self.timeout_seconds = timeout_seconds
        self.config = config or GenerationConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self._clock = clock

    async def run(self) -> BenchmarkRun:
        """Execute the whole benchmark."""
        outcome = BenchmarkRun()

        logger.info(
            f"Benchmark: {len(self.cases)} cases, backends={[name for name, _ in self.backends]}, "
            f"modes={[m.value for m in self.prompt_modes]}, runs per case={self.runs_per_case}"
        )

        for backend_name, factory in self.backends:
            tally = BackendTally()
            outcome.tallies[backend_name] = tally
            logger.info(f"=== Backend: {backend_name} ===")

            try:
                backend = factory()
            except Exception as e:
                tally.skipped_reason = str(e)
                logger.error(f"Skipping backend {backend_name}: failed to create backend: {e}")
                continue

            try:
                await self._run_backend(backend_name, backend, tally, outcome.results)
            finally:
                await backend.close()

            logger.info(f"{backend_name}: timeouts={tally.timeouts}, errors={tally.errors}")

        return outcome

    async def _run_backend(self, backend_name: str, backend: LLMBackend,
                           tally: BackendTally, results: List[CaseResult]):
        for case in self.cases:
            records = case.records()
            known_ids = record_ids(records)

            for mode in self.prompt_modes:
                prompt = self.prompt_builder.build_prompt(records, mode)

                for run_index in range(1, self.runs_per_case + 1):
                    label = f"{case.id}/{mode.value} run {run_index}"
                    start = self._clock()
                    try:
                        output = await asyncio.wait_for(
                            backend.generate(prompt, self.config),
                            timeout=self.timeout_seconds
                        )
                    except (asyncio.TimeoutError, BackendTimeoutError):
                        tally.timeouts += 1
                        logger.warning(f"TIMEOUT {label} after {self.timeout_seconds}s")
                        continue
                    except Exception as e:
                        tally.errors += 1
                        logger.warning(f"ERROR {label}: {e}")
                        continue

                    latency_ms = int((self._clock() - start) * 1000)
                    scores = QualityScorer.score(output, mode, known_ids)

                    results.append(CaseResult(
                        case_id=case.id,
                        backend=backend_name,
                        prompt_mode=mode,
                        run=run_index,
                        latency_ms=latency_ms,
                        char_count=len(output),
                        scores=scores,
                        output=output,
                    ))

                    logger.info(
                        f"{'PASS' if scores.all_passed else 'FAIL'} {label}: {latency_ms}ms, "
                        f"{len(output)} chars, checks {scores.pass_count}/{scores.total_checks}"
                    )
