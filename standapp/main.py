"""
Main application entry point for the StandApp benchmark.

This module wires the components together:
- Environment configuration and validation
- Benchmark case loading
- Backend construction through the registry
- The benchmark runner
- Markdown and CSV report generation
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .backends import BackendRegistry
from .benchmark import BenchmarkCaseLoader, BenchmarkRunner, BenchmarkRun, Reporting
from .config import BenchmarkConfig, ConfigValidator, EnvironmentLoader
from .exceptions import CaseLoadError, ConfigurationError

REPORT_FILE = "benchmark-report.md"
CSV_FILE = "benchmark-results.csv"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_BACKENDS = 2


class BenchmarkApp:
    """Main application class for the StandApp benchmark."""

    def __init__(self, config: Optional[BenchmarkConfig] = None):
        self.config = config
        self.registry = BackendRegistry()

        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[logging.StreamHandler(sys.stdout)]
        )
        self.logger = logging.getLogger(__name__)

    def initialize(self):
        """Load and validate configuration, then register the selected backends.

        Raises:
            ConfigurationError: The configuration failed validation
        """
        if self.config is None:
            self.config = EnvironmentLoader.load_config()

        # Set log level from config
        logging.getLogger().setLevel(self.config.log_level.value)

        errors = ConfigValidator.validate_config(self.config)
        if errors:
            for error in errors:
                self.logger.error(f"Configuration error: {error}")
            raise ConfigurationError("Invalid benchmark configuration", errors=errors)

        for settings in self.config.selected_backends():
            self.registry.register_settings(settings)

        self.logger.info(f"Configuration loaded: backends={self.registry.names()}")

    async def run(self) -> int:
        """Run the benchmark and write reports. Returns the process exit code."""
        if len(self.registry) == 0:
            self.logger.error(
                "No backends configured. Set BENCH_LOCAL_URL / BENCH_CLOUD_URL "
                "(or ANTHROPIC_API_KEY) and check BENCH_BACKENDS."
            )
            return EXIT_NO_BACKENDS

        cases = BenchmarkCaseLoader.load_all(self.config.bench_dir, self.config.case_filter)
        if self.config.case_filter:
            self.logger.info(f"Case filter: {', '.join(self.config.case_filter)}")

        runner = BenchmarkRunner(
            cases=cases,
            backends=[(name, self.registry.get(name)) for name in self.registry.names()],
            runs_per_case=self.config.runs_per_case,
            prompt_modes=self.config.prompt_modes,
            timeout_seconds=self.config.timeout_seconds,
            config=self.config.generation,
        )
        outcome = await runner.run()

        self.write_reports(outcome, len(cases))
        return EXIT_OK

    def write_reports(self, outcome: BenchmarkRun, case_count: int):
        """Write the markdown report and CSV into the output directory."""
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        results = outcome.results
        if self.config.human_scores_path:
            results = Reporting.read_human_scores(self.config.human_scores_path, results)

        summaries = Reporting.build_summaries(results)
        report = Reporting.render_markdown_report(summaries, case_count, self.config.runs_per_case)

        report_path = output_dir / REPORT_FILE
        report_path.write_text(report, encoding='utf-8')
        self.logger.info(f"Markdown report: {report_path.resolve()}")

        csv_path = output_dir / CSV_FILE
        Reporting.write_csv(results, csv_path)
        self.logger.info(f"CSV results: {csv_path.resolve()}")


async def main(config: Optional[BenchmarkConfig] = None) -> int:
    """Main entry point for the StandApp benchmark."""
    app = BenchmarkApp(config)

    try:
        app.initialize()
        return await app.run()
    except ConfigurationError as e:
        logging.error(f"Benchmark not started: {e.message}")
        return EXIT_FAILURE
    except CaseLoadError as e:
        logging.error(f"Benchmark aborted: {e.message}")
        return EXIT_FAILURE
