"""
Tests for the benchmark module: case loading, metrics, reporting and the runner.
"""

import asyncio
import csv
import json
import tempfile
from pathlib import Path

import pytest

from standapp.backends import LLMBackend
from standapp.benchmark import (
    BackendSummary,
    BenchmarkCase,
    BenchmarkCaseLoader,
    BenchmarkRunner,
    CaseResult,
    HumanScore,
    Metrics,
    Reporting,
    ThresholdStatus,
)
from standapp.benchmark.reporting import CSV_HEADER
from standapp.exceptions import BackendError, BackendTimeoutError, CaseLoadError
from standapp.models import PromptMode, QualityScores


CASE_DATA = {
    "id": "case-01",
    "description": "Single bug fix",
    "commits": [
        {
            "id": "abc1234",
            "authorName": "Alice",
            "authorEmail": "alice@example.com",
            "whenDate": "2025-01-15T10:00:00Z",
            "message": "Fix login bug",
            "extraField": "ignored",
        }
    ],
    "expectations": {
        "summary": {"mustMentionIds": ["abc1234"], "notes": "mention the fix"},
        "json": {"expectedCategories": ["Bug Fixes"], "expectedCommitCount": 1},
    },
}

SUMMARY_OUTPUT = "## Yesterday\n- Fixed login (abc1234)\n## Today\n- Tests\n## Blockers\n- None"


def write_case(directory, name, data):
    path = Path(directory) / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def make_scores(passed=True, mode=PromptMode.SUMMARY):
    if mode is PromptMode.JSON:
        return QualityScores(all_ids_valid=True, no_hallucinated_ids=passed,
                             pass_count=4 if passed else 3, total_checks=4,
                             json_parseable=True, json_schema_compliant=True)
    return QualityScores(all_ids_valid=True, no_hallucinated_ids=True,
                         pass_count=3 if passed else 2, total_checks=3,
                         headings_present=passed)


def make_result(backend="local", latency_ms=1000, char_count=500, passed=True,
                case_id="case-01", mode=PromptMode.SUMMARY, run=1, output="a b c",
                human_score=None):
    return CaseResult(
        case_id=case_id,
        backend=backend,
        prompt_mode=mode,
        run=run,
        latency_ms=latency_ms,
        char_count=char_count,
        scores=make_scores(passed, mode),
        output=output,
        human_score=human_score,
    )


def make_summary(backend="local", faithfulness=2.0, pass_rate=1.0, p50=1000,
                 throughput=100.0, determinism=0.9):
    return BackendSummary(
        backend=backend,
        avg_faithfulness=faithfulness,
        avg_completeness=1.0,
        avg_structure=1.5,
        auto_pass_rate=pass_rate,
        latency_p50=p50,
        latency_p95=p50 * 2,
        throughput_median=throughput,
        determinism=determinism,
    )


class TestBenchmarkCaseLoader:
    """Tests for loading case files."""

    def test_load_camel_case_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_case(tmpdir, "case-01.json", CASE_DATA)
            case = BenchmarkCaseLoader.load(path)

            assert case.id == "case-01"
            assert case.expectations.summary.must_mention_ids == ["abc1234"]
            assert case.expectations.json_.expected_categories == ["Bug Fixes"]
            assert case.expectations.json_.expected_commit_count == 1

            record = case.records()[0]
            assert record.id == "abc1234"
            assert record.author_name == "Alice"
            assert record.author_email == "alice@example.com"
            assert record.date == "2025-01-15T10:00:00Z"

    def test_expectation_defaults(self):
        case = BenchmarkCase.model_validate({"id": "minimal"})
        assert case.commits == []
        assert case.expectations.summary.required_headings == ["## Yesterday", "## Today", "## Blockers"]
        assert case.expectations.json_.must_parse_as_json is True
        assert case.expectations.json_.expected_commit_count == -1

    def test_load_all_sorted_and_filtered(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            write_case(tmpdir, "case-02.json", dict(CASE_DATA, id="second"))
            write_case(tmpdir, "case-01.json", dict(CASE_DATA, id="first"))
            write_case(tmpdir, "notes.json", {"not": "a case"})

            cases = BenchmarkCaseLoader.load_all(tmpdir)
            assert [c.id for c in cases] == ["first", "second"]

            filtered = BenchmarkCaseLoader.load_all(tmpdir, case_filter=["second"])
            assert [c.id for c in filtered] == ["second"]

    def test_missing_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(CaseLoadError):
                BenchmarkCaseLoader.load_all(Path(tmpdir) / "absent")

    def test_invalid_json(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "case-bad.json"
            path.write_text("{", encoding="utf-8")
            with pytest.raises(CaseLoadError) as exc_info:
                BenchmarkCaseLoader.load(path)
            assert exc_info.value.path == str(path)

    def test_missing_required_field(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_case(tmpdir, "case-x.json", {"description": "no id"})
            with pytest.raises(CaseLoadError):
                BenchmarkCaseLoader.load(path)


class TestMetrics:
    """Tests for Metrics."""

    def test_percentile_single_element(self):
        assert Metrics.percentile([100], 50) == 100
        assert Metrics.percentile([100], 95) == 100

    def test_percentile_nearest_rank(self):
        values = list(range(1, 101))
        assert Metrics.percentile(values, 50) == 50
        assert Metrics.percentile(values, 95) == 95
        assert Metrics.percentile(values, 100) == 100
        assert Metrics.percentile(values, 0) == 1

    def test_percentile_empty(self):
        assert Metrics.percentile([], 50) == 0

    def test_determinism_identical(self):
        assert Metrics.determinism(["hello world"] * 3) == 1.0

    def test_determinism_single(self):
        assert Metrics.determinism(["hello"]) == 1.0
        assert Metrics.determinism([]) == 1.0

    def test_determinism_disjoint(self):
        assert Metrics.determinism(["alpha beta gamma", "one two three", "x y z"]) < 0.1

    def test_determinism_similar(self):
        outputs = [
            "Yesterday I worked on login feature and fixed bugs",
            "Yesterday I worked on the login feature and fixed some bugs",
            "Yesterday I worked on login feature and fixed a few bugs",
        ]
        assert Metrics.determinism(outputs) > 0.5

    def test_determinism_case_and_whitespace_insensitive(self):
        assert Metrics.determinism(["Hello   World", "hello\nworld"]) == 1.0

    def test_determinism_empty_strings(self):
        assert Metrics.determinism(["", "   "]) == 1.0

    def test_throughput(self):
        assert Metrics.throughput(500, 1000) == 500.0
        assert Metrics.throughput(500, 0) == 0.0

    def test_median_is_upper(self):
        assert Metrics.median([3.0, 1.0, 2.0, 4.0]) == 3.0
        assert Metrics.median([]) == 0.0


class TestReportingSummaries:
    """Tests for building per-backend summaries."""

    def test_build_summaries(self):
        results = [
            make_result(latency_ms=1000, char_count=1000, run=1),
            make_result(latency_ms=2000, char_count=1000, run=2, passed=False),
            make_result(backend="REST_API (cloud)", latency_ms=500, char_count=1000),
        ]
        local, cloud = Reporting.build_summaries(results)

        assert local.backend == "local"
        assert local.auto_pass_rate == 0.5
        assert local.latency_p50 == 1000
        assert local.latency_p95 == 1000
        assert local.throughput_median == 1000.0
        assert local.avg_faithfulness == 0.0
        assert cloud.backend == "REST_API (cloud)"
        assert cloud.auto_pass_rate == 1.0

    def test_human_score_averages(self):
        results = [
            make_result(run=1, human_score=HumanScore(faithfulness=2, completeness=1, structure=2)),
            make_result(run=2, human_score=HumanScore(faithfulness=1, completeness=1, structure=1)),
            make_result(run=3),
        ]
        summary = Reporting.build_summaries(results)[0]
        assert summary.avg_faithfulness == 1.5
        assert summary.avg_completeness == 1.0
        assert summary.avg_structure == 1.5

    def test_determinism_grouped_by_case_and_mode(self):
        results = [
            make_result(case_id="c1", run=1, output="same words"),
            make_result(case_id="c1", run=2, output="same words"),
            make_result(case_id="c2", run=1, output="totally different"),
            make_result(case_id="c2", run=2, output="totally different"),
        ]
        assert Reporting.build_summaries(results)[0].determinism == 1.0

    def test_human_score_total(self):
        assert HumanScore(2, 2, 1, 1, 0).total == 6


class TestReportingThresholds:
    """Tests for pass/fail evaluation."""

    def test_all_pass(self):
        statuses = [t.status for t in Reporting.evaluate_thresholds(make_summary())]
        assert statuses == [ThresholdStatus.PASS] * 3

    def test_boundaries(self):
        thresholds = Reporting.evaluate_thresholds(make_summary(faithfulness=1.5, pass_rate=0.9, p50=8000))
        assert [t.status for t in thresholds] == [ThresholdStatus.PASS] * 3

    def test_latency_warn_and_fail(self):
        assert Reporting.evaluate_thresholds(make_summary(p50=15000))[2].status is ThresholdStatus.WARN
        assert Reporting.evaluate_thresholds(make_summary(p50=15001))[2].status is ThresholdStatus.FAIL

    def test_quality_failures(self):
        thresholds = Reporting.evaluate_thresholds(make_summary(faithfulness=1.49, pass_rate=0.89))
        assert thresholds[0].status is ThresholdStatus.FAIL
        assert thresholds[1].status is ThresholdStatus.FAIL
        assert thresholds[0].criterion == "Faithfulness"
        assert thresholds[1].criterion == "Structure (auto pass rate)"
        assert thresholds[2].criterion == "Latency p50 (ms)"


class TestReportingDeltas:
    """Tests for cloud comparison."""

    def test_compute_deltas(self):
        local = make_summary(faithfulness=1.0, p50=3000, throughput=50.0)
        cloud = make_summary(backend="cloud", faithfulness=2.0, p50=1000, throughput=100.0)
        rows = {row.metric: row for row in Reporting.compute_deltas(local, cloud)}

        assert list(rows) == [
            "Faithfulness", "Completeness", "Structure", "Auto pass rate",
            "Latency p50 (ms)", "Throughput (c/s)", "Determinism",
        ]
        assert rows["Faithfulness"].delta == -1.0
        assert rows["Faithfulness"].delta_pct == -50.0
        assert rows["Latency p50 (ms)"].delta == 2000.0
        assert rows["Latency p50 (ms)"].delta_pct == 200.0

    def test_zero_baseline_percentage(self):
        local = make_summary(faithfulness=1.0)
        cloud = make_summary(backend="cloud", faithfulness=0.0)
        row = Reporting.compute_deltas(local, cloud)[0]
        assert row.delta == 1.0
        assert row.delta_pct == 0.0

    def test_delta_markdown(self):
        local = make_summary(faithfulness=1.0)
        cloud = make_summary(backend="cloud", faithfulness=2.0)
        text = Reporting.delta_markdown(Reporting.compute_deltas(local, cloud), "local")
        lines = text.splitlines()
        assert lines[0] == "### local vs Cloud"
        assert lines[2] == "| Metric | Local | Cloud | Delta | Delta % |"
        assert "| Faithfulness | 1.00 | 2.00 | -1.00 | -50.0% |" in lines


class TestReportingMarkdown:
    """Tests for the markdown report."""

    def test_table_row_format(self):
        table = Reporting.markdown_table([make_summary(pass_rate=0.75)])
        lines = table.splitlines()
        assert lines[0].startswith("| Backend | Faithfulness (avg) | Completeness (avg) | Structure |")
        assert lines[2] == "| local | 2.00 | 1.00 | 1.50 | 75.0% | 1000ms | 2000ms | 100.0 c/s | 0.900 |"

    def test_report_sections(self):
        summaries = [make_summary(), make_summary(backend="REST_API (Cloud)")]
        report = Reporting.render_markdown_report(summaries, case_count=4, runs_per_case=5)

        assert report.startswith("# Benchmark Results\n")
        assert "Cases: 4" in report
        assert "Runs per case: 5" in report
        assert "## Comparison Table" in report
        assert "### REST_API (Cloud)" in report
        assert "- [PASS] Faithfulness: 2.00 (threshold: 1.50)" in report
        assert "- [PASS] Latency p50 (ms): 1000.00 (threshold: 8000.00)" in report
        assert "## Cloud vs Local Delta Analysis" in report
        assert "### local vs Cloud" in report
        assert "### REST_API (Cloud) vs Cloud" not in report

    def test_report_without_cloud_has_no_delta_section(self):
        report = Reporting.render_markdown_report([make_summary()], case_count=1, runs_per_case=1)
        assert "Delta Analysis" not in report


class TestReportingCsv:
    """Tests for CSV export and human score import."""

    def test_header_and_rows(self):
        results = [
            make_result(mode=PromptMode.SUMMARY),
            make_result(mode=PromptMode.JSON, passed=False,
                        human_score=HumanScore(2, 1, 2, 1, 1)),
        ]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "results.csv"
            Reporting.write_csv(results, path)
            lines = path.read_text(encoding="utf-8").splitlines()

        assert lines[0] == ",".join(CSV_HEADER)
        assert lines[0] == (
            "case_id,backend,prompt_type,run,latency_ms,char_count,json_parseable,"
            "json_schema_compliant,headings_present,all_ids_valid,no_hallucinated_ids,"
            "faithfulness,completeness,structure,actionability,clarity,total_human,total_auto_pass"
        )
        assert lines[1] == "case-01,local,SUMMARY,1,1000,500,,,true,true,true,,,,,,,3"
        assert lines[2] == "case-01,local,JSON,1,1000,500,true,true,,true,false,2,1,2,1,1,7,3"

    def test_read_human_scores(self):
        results = [make_result(run=1), make_result(run=2)]
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "reviewed.csv"
            Reporting.write_csv(results, path)

            with open(path, encoding="utf-8", newline="") as f:
                rows = list(csv.DictReader(f))
            rows[1].update(faithfulness="2", completeness="1", structure="2",
                           actionability="1", clarity="")
            with open(path, "w", encoding="utf-8", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_HEADER)
                writer.writeheader()
                writer.writerows(rows)

            merged = Reporting.read_human_scores(path, results)

        assert merged[0].human_score is None
        assert merged[1].human_score == HumanScore(2, 1, 2, 1, 0)
        assert merged[1].output == results[1].output

    def test_read_human_scores_rejects_bad_cells(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "reviewed.csv"
            Reporting.write_csv([make_result()], path)
            text = path.read_text(encoding="utf-8").replace(",,,,,,,3", ",great,,,,,,3")
            path.write_text(text, encoding="utf-8")

            with pytest.raises(ValueError):
                Reporting.read_human_scores(path, [make_result()])


class ScriptedBackend(LLMBackend):
    """Plays back a list of behaviours, one per call."""

    def __init__(self, name, script):
        self.name = name
        self.script = list(script)
        self.calls = []
        self.closed = False

    async def generate(self, prompt, config):
        self.calls.append(prompt)
        step = self.script.pop(0) if self.script else SUMMARY_OUTPUT
        if step == "hang":
            await asyncio.sleep(10)
        if isinstance(step, Exception):
            raise step
        return step

    async def close(self):
        self.closed = True


class FakeClock:
    """Advances half a second on every reading."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        self.now += 0.5
        return self.now


def make_case(case_id="case-01"):
    return BenchmarkCase.model_validate(dict(CASE_DATA, id=case_id))


class TestBenchmarkRunner:
    """Tests for BenchmarkRunner."""

    @pytest.mark.asyncio
    async def test_nested_iteration_and_results(self):
        backend = ScriptedBackend("local", [])
        runner = BenchmarkRunner(
            cases=[make_case("c1"), make_case("c2")],
            backends=[("local", lambda: backend)],
            runs_per_case=2,
            clock=FakeClock(),
        )
        outcome = await runner.run()

        keys = [(r.case_id, r.prompt_mode, r.run) for r in outcome.results]
        assert keys == [
            ("c1", PromptMode.SUMMARY, 1), ("c1", PromptMode.SUMMARY, 2),
            ("c1", PromptMode.JSON, 1), ("c1", PromptMode.JSON, 2),
            ("c2", PromptMode.SUMMARY, 1), ("c2", PromptMode.SUMMARY, 2),
            ("c2", PromptMode.JSON, 1), ("c2", PromptMode.JSON, 2),
        ]
        first = outcome.results[0]
        assert first.latency_ms == 500
        assert first.char_count == len(SUMMARY_OUTPUT)
        assert first.scores.all_passed
        assert first.output == SUMMARY_OUTPUT
        assert backend.closed

    @pytest.mark.asyncio
    async def test_prompt_is_full_engine_prompt(self):
        backend = ScriptedBackend("local", [])
        runner = BenchmarkRunner(cases=[make_case()], backends=[("local", lambda: backend)],
                                 runs_per_case=1, prompt_modes=[PromptMode.JSON])
        await runner.run()

        expected = runner.prompt_builder.build_prompt(make_case().records(), PromptMode.JSON)
        assert backend.calls == [expected]

    @pytest.mark.asyncio
    async def test_timeouts_and_errors_tallied(self):
        backend = ScriptedBackend("local", [
            "hang",
            BackendError("boom", backend="local"),
            BackendTimeoutError("local", 5),
            SUMMARY_OUTPUT,
        ])
        runner = BenchmarkRunner(
            cases=[make_case()],
            backends=[("local", lambda: backend)],
            runs_per_case=4,
            prompt_modes=[PromptMode.SUMMARY],
            timeout_seconds=0.05,
        )
        outcome = await runner.run()

        tally = outcome.tallies["local"]
        assert tally.timeouts == 2
        assert tally.errors == 1
        assert [r.run for r in outcome.results] == [4]

    @pytest.mark.asyncio
    async def test_failing_factory_skips_backend(self):
        def broken():
            raise RuntimeError("no model file")

        good = ScriptedBackend("good", [])
        runner = BenchmarkRunner(
            cases=[make_case()],
            backends=[("broken", broken), ("good", lambda: good)],
            runs_per_case=1,
            prompt_modes=[PromptMode.SUMMARY],
        )
        outcome = await runner.run()

        assert outcome.tallies["broken"].skipped_reason == "no model file"
        assert [r.backend for r in outcome.results] == ["good"]
        assert [s.backend for s in outcome.summaries()] == ["good"]

    @pytest.mark.asyncio
    async def test_pathological_output_does_not_stop_later_backends(self):
        deep = ScriptedBackend("deep", ["[" * 100000 + "]" * 100000])
        good = ScriptedBackend("good", [])
        runner = BenchmarkRunner(
            cases=[make_case()],
            backends=[("deep", lambda: deep), ("good", lambda: good)],
            runs_per_case=1,
            prompt_modes=[PromptMode.JSON],
        )
        outcome = await runner.run()

        assert [r.backend for r in outcome.results] == ["deep", "good"]
        assert outcome.results[0].scores.json_parseable is False
        assert outcome.results[0].scores.json_schema_compliant is False
        assert outcome.tallies["deep"].errors == 0
        assert deep.closed and good.closed

    def test_runs_per_case_validated(self):
        with pytest.raises(ValueError):
            BenchmarkRunner(cases=[], backends=[], runs_per_case=0)
