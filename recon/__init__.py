"""
Batch job that purges business-partner catalog entries listed in an input table.

Each row's card and item keys are validated, looked up in the directory and,
when a catalog entry matches, deleted.  Failures stay scoped to their row and
all directory handles are released once the run ends.
"""

from .cli import run_cli
from .results import JobReport
from .runner import JobAbortedError, ReconciliationEngine

__all__ = ["JobAbortedError", "JobReport", "ReconciliationEngine", "run_cli"]
