"""Domain models for the calendar spreadsheet reconciliation engine."""

from .client import CanonicalClient, ExistingEntry, NewCalendarEntry
from .config_models import DatabaseConfig, MatchingRules, ReconcileConfig
from .match_result import MatchResult, MatchStrategy
from .normalized_row import NormalizedRow, Priority
from .reconciled_row import Classification, ReconciledRow
from .reconciliation_report import CommitResult, ReconciliationReport

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "MatchingRules",
    "ReconcileConfig",
    # Registry / store records
    "CanonicalClient",
    "ExistingEntry",
    "NewCalendarEntry",
    # Processing models
    "NormalizedRow",
    "Priority",
    "MatchResult",
    "MatchStrategy",
    "Classification",
    "ReconciledRow",
    "ReconciliationReport",
    "CommitResult",
]
