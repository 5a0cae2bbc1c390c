"""
Benchmark harness for StandApp backends.

Runs fixed benchmark cases against one or more backends, scores every output
and renders comparison reports.
"""

from .cases import BenchmarkCase, BenchmarkCaseLoader, CaseCommit
from .metrics import Metrics
from .reporting import (
    Reporting, CaseResult, HumanScore, BackendSummary,
    ThresholdStatus, ThresholdResult, DeltaRow
)
from .runner import BenchmarkRunner, BenchmarkRun, BackendTally

__all__ = [
    # Cases
    'BenchmarkCase',
    'BenchmarkCaseLoader',
    'CaseCommit',

    # Metrics and reporting
    'Metrics',
    'Reporting',
    'CaseResult',
    'HumanScore',
    'BackendSummary',
    'ThresholdStatus',
    'ThresholdResult',
    'DeltaRow',

    # Runner
    'BenchmarkRunner',
    'BenchmarkRun',
    'BackendTally',
]
