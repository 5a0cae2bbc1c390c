"""
Benchmark report generation: per-backend summaries, pass/fail thresholds,
cloud-vs-local deltas, the markdown report and the CSV export.
"""

import csv
import logging
from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.base import BaseModel
from ..models.summary import PromptMode, QualityScores
from .metrics import Metrics

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "case_id", "backend", "prompt_type", "run", "latency_ms", "char_count",
    "json_parseable", "json_schema_compliant", "headings_present",
    "all_ids_valid", "no_hallucinated_ids",
    "faithfulness", "completeness", "structure", "actionability", "clarity",
    "total_human", "total_auto_pass",
]

HUMAN_SCORE_COLUMNS = ("faithfulness", "completeness", "structure", "actionability", "clarity")

FAITHFULNESS_THRESHOLD = 1.5
AUTO_PASS_RATE_THRESHOLD = 0.9
LATENCY_P50_PASS_MS = 8000
LATENCY_P50_WARN_MS = 15000

CLOUD_MARKER = "cloud"


@dataclass(frozen=True)
class HumanScore(BaseModel):
    """Reviewer rubric scores for one output."""
    faithfulness: int = 0
    completeness: int = 0
    structure: int = 0
    actionability: int = 0
    clarity: int = 0

    @property
    def total(self) -> int:
        return self.faithfulness + self.completeness + self.structure + self.actionability + self.clarity


@dataclass(frozen=True)
class CaseResult(BaseModel):
    """One successful backend call in a benchmark run."""
    case_id: str
    backend: str
    prompt_mode: PromptMode
    run: int
    latency_ms: int
    char_count: int
    scores: QualityScores
    output: str = ""
    human_score: Optional[HumanScore] = None

    @property
    def key(self) -> Tuple[str, str, str, int]:
        return (self.case_id, self.backend, self.prompt_mode.value, self.run)


@dataclass(frozen=True)
class BackendSummary(BaseModel):
    """Aggregated metrics for one backend."""
    backend: str
    avg_faithfulness: float
    avg_completeness: float
    avg_structure: float
    auto_pass_rate: float
    latency_p50: int
    latency_p95: int
    throughput_median: float
    determinism: float


class ThresholdStatus(Enum):
    PASS = "PASS"
    WARN = "WARN"
    FAIL = "FAIL"


@dataclass(frozen=True)
class ThresholdResult(BaseModel):
    criterion: str
    value: float
    threshold: float
    status: ThresholdStatus


@dataclass(frozen=True)
class DeltaRow(BaseModel):
    """Local minus cloud for one metric."""
    metric: str
    local_value: float
    cloud_value: float
    delta: float
    delta_pct: float


class Reporting:
    """Builds summaries and renders benchmark reports."""

    @staticmethod
    def build_summaries(results: Sequence[CaseResult]) -> List[BackendSummary]:
        """Aggregate results per backend, in order of first appearance.

        Determinism is averaged over groups of repeated runs of the same case
        and prompt mode.
        """
        by_backend: Dict[str, List[CaseResult]] = OrderedDict()
        for result in results:
            by_backend.setdefault(result.backend, []).append(result)

        summaries = []
        for backend, backend_results in by_backend.items():
            latencies = sorted(r.latency_ms for r in backend_results)
            throughputs = [Metrics.throughput(r.char_count, r.latency_ms) for r in backend_results]

            summaries.append(BackendSummary(
                backend=backend,
                avg_faithfulness=_average_human(backend_results, "faithfulness"),
                avg_completeness=_average_human(backend_results, "completeness"),
                avg_structure=_average_human(backend_results, "structure"),
                auto_pass_rate=sum(1 for r in backend_results if r.scores.all_passed) / len(backend_results),
                latency_p50=Metrics.percentile(latencies, 50),
                latency_p95=Metrics.percentile(latencies, 95),
                throughput_median=Metrics.median(throughputs),
                determinism=_grouped_determinism(backend_results),
            ))
        return summaries

    @staticmethod
    def evaluate_thresholds(summary: BackendSummary) -> List[ThresholdResult]:
        """Apply the fixed pass/warn/fail criteria to one backend."""
        if summary.latency_p50 <= LATENCY_P50_PASS_MS:
            latency_status = ThresholdStatus.PASS
        elif summary.latency_p50 <= LATENCY_P50_WARN_MS:
            latency_status = ThresholdStatus.WARN
        else:
            latency_status = ThresholdStatus.FAIL

        return [
            ThresholdResult(
                criterion="Faithfulness",
                value=summary.avg_faithfulness,
                threshold=FAITHFULNESS_THRESHOLD,
                status=ThresholdStatus.PASS if summary.avg_faithfulness >= FAITHFULNESS_THRESHOLD else ThresholdStatus.FAIL,
            ),
            ThresholdResult(
                criterion="Structure (auto pass rate)",
                value=summary.auto_pass_rate,
                threshold=AUTO_PASS_RATE_THRESHOLD,
                status=ThresholdStatus.PASS if summary.auto_pass_rate >= AUTO_PASS_RATE_THRESHOLD else ThresholdStatus.FAIL,
            ),
            ThresholdResult(
                criterion="Latency p50 (ms)",
                value=float(summary.latency_p50),
                threshold=float(LATENCY_P50_PASS_MS),
                status=latency_status,
            ),
        ]

    @staticmethod
    def compute_deltas(local: BackendSummary, cloud: BackendSummary) -> List[DeltaRow]:
        """Per-metric difference of a backend against the cloud baseline."""
        def row(metric: str, local_value: float, cloud_value: float) -> DeltaRow:
            delta = local_value - cloud_value
            delta_pct = (delta / cloud_value) * 100 if cloud_value != 0 else 0.0
            return DeltaRow(metric, float(local_value), float(cloud_value), delta, delta_pct)

        return [
            row("Faithfulness", local.avg_faithfulness, cloud.avg_faithfulness),
            row("Completeness", local.avg_completeness, cloud.avg_completeness),
            row("Structure", local.avg_structure, cloud.avg_structure),
            row("Auto pass rate", local.auto_pass_rate, cloud.auto_pass_rate),
            row("Latency p50 (ms)", local.latency_p50, cloud.latency_p50),
            row("Throughput (c/s)", local.throughput_median, cloud.throughput_median),
            row("Determinism", local.determinism, cloud.determinism),
        ]

    @staticmethod
    def markdown_table(summaries: Sequence[BackendSummary]) -> str:
        lines = [
            "| Backend | Faithfulness (avg) | Completeness (avg) | Structure | Auto-checks pass% | Latency p50 | Latency p95 | Throughput | Determinism |",
            "|---------|--------------------|---------------------|-----------|--------------------|-------------|-------------|------------|-------------|",
        ]
        for s in summaries:
            lines.append(
                f"| {s.backend} | {s.avg_faithfulness:.2f} | {s.avg_completeness:.2f} | {s.avg_structure:.2f} | "
                f"{s.auto_pass_rate * 100:.1f}% | {s.latency_p50}ms | {s.latency_p95}ms | "
                f"{s.throughput_median:.1f} c/s | {s.determinism:.3f} |"
            )
        return "\n".join(lines) + "\n"

    @staticmethod
    def delta_markdown(deltas: Sequence[DeltaRow], local_name: str) -> str:
        lines = [
            f"### {local_name} vs Cloud",
            "",
            "| Metric | Local | Cloud | Delta | Delta % |",
            "|--------|-------|-------|-------|---------|",
        ]
        for d in deltas:
            lines.append(
                f"| {d.metric} | {d.local_value:.2f} | {d.cloud_value:.2f} | {d.delta:.2f} | {d.delta_pct:.1f}% |"
            )
        return "\n".join(lines) + "\n"

    @staticmethod
    def find_cloud_summary(summaries: Sequence[BackendSummary]) -> Optional[BackendSummary]:
        """First backend whose name contains "cloud", case-insensitive."""
        for summary in summaries:
            if CLOUD_MARKER in summary.backend.lower():
                return summary
        return None

    @staticmethod
    def render_markdown_report(summaries: Sequence[BackendSummary],
                               case_count: int,
                               runs_per_case: int) -> str:
        """Full markdown report: comparison table, thresholds and cloud deltas."""
        parts = [
            "# Benchmark Results",
            "",
            f"Cases: {case_count}",
            f"Runs per case: {runs_per_case}",
            "",
            "## Comparison Table",
            "",
            Reporting.markdown_table(summaries),
            "## Pass/Fail Thresholds",
            "",
        ]

        for summary in summaries:
            parts.append(f"### {summary.backend}")
            for t in Reporting.evaluate_thresholds(summary):
                parts.append(
                    f"- [{t.status.value}] {t.criterion}: {t.value:.2f} (threshold: {t.threshold:.2f})"
                )
            parts.append("")

        cloud_summary = Reporting.find_cloud_summary(summaries)
        if cloud_summary is not None:
            parts.extend(["## Cloud vs Local Delta Analysis", ""])
            for summary in summaries:
                if summary is cloud_summary:
                    continue
                deltas = Reporting.compute_deltas(summary, cloud_summary)
                parts.append(Reporting.delta_markdown(deltas, summary.backend))

        return "\n".join(parts) + "\n"

    @staticmethod
    def write_csv(results: Sequence[CaseResult], path) -> None:
        """Write one row per result; human-score cells stay empty until reviewed."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(CSV_HEADER)
            for r in results:
                hs = r.human_score
                writer.writerow([
                    r.case_id,
                    r.backend,
                    r.prompt_mode.value,
                    r.run,
                    r.latency_ms,
                    r.char_count,
                    _cell(r.scores.json_parseable),
                    _cell(r.scores.json_schema_compliant),
                    _cell(r.scores.headings_present),
                    _cell(r.scores.all_ids_valid),
                    _cell(r.scores.no_hallucinated_ids),
                    _cell(hs.faithfulness if hs else None),
                    _cell(hs.completeness if hs else None),
                    _cell(hs.structure if hs else None),
                    _cell(hs.actionability if hs else None),
                    _cell(hs.clarity if hs else None),
                    _cell(hs.total if hs else None),
                    r.scores.pass_count,
                ])
        logger.info(f"Wrote {len(results)} result rows to {path}")

    @staticmethod
    def read_human_scores(path, results: Sequence[CaseResult]) -> List[CaseResult]:
        """Attach reviewer scores from a filled-in results CSV.

        Rows are matched on case, backend, prompt type and run. Rows whose
        human-score cells are all empty leave the result unscored.

        Raises:
            ValueError: A human-score cell is not an integer
        """
        path = Path(path)
        scores: Dict[Tuple[str, str, str, int], HumanScore] = {}

        with open(path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            for line_number, row in enumerate(reader, start=2):
                cells = {name: (row.get(name) or "").strip() for name in HUMAN_SCORE_COLUMNS}
                if not any(cells.values()):
                    continue
                try:
                    key = (row["case_id"], row["backend"], row["prompt_type"], int(row["run"]))
                    human = HumanScore(**{name: int(value) if value else 0 for name, value in cells.items()})
                except (KeyError, ValueError) as e:
                    raise ValueError(f"{path}:{line_number}: invalid human score row: {e}") from e
                scores[key] = human

        merged = []
        matched = 0
        for result in results:
            human = scores.get(result.key)
            if human is None:
                merged.append(result)
                continue
            matched += 1
            merged.append(CaseResult(
                case_id=result.case_id,
                backend=result.backend,
                prompt_mode=result.prompt_mode,
                run=result.run,
                latency_ms=result.latency_ms,
                char_count=result.char_count,
                scores=result.scores,
                output=result.output,
                human_score=human,
            ))

        logger.info(f"Applied human scores to {matched} of {len(results)} results from {path}")
        return merged


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _average_human(results: Sequence[CaseResult], attribute: str) -> float:
    values = [getattr(r.human_score, attribute) for r in results if r.human_score is not None]
    if not values:
        return 0.0
    return sum(values) / len(values)


def _grouped_determinism(results: Sequence[CaseResult]) -> float:
    groups: Dict[Tuple[str, PromptMode], List[str]] = OrderedDict()
    for r in results:
        groups.setdefault((r.case_id, r.prompt_mode), []).append(r.output)
    if not groups:
        return 1.0
    scores = [Metrics.determinism(outputs) for outputs in groups.values()]
    return sum(scores) / len(scores)
