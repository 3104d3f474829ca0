"""
Build Retention Policy Module.

Project selection, age evaluation, the retention engine and the snapshot
coupler, plus the configuration and result models they share.
"""

from .models import (
    WILDCARD,
    Action,
    CandidateOutcome,
    CandidateStatus,
    CleanupReport,
    PolicyConfig,
    RetentionResult,
    SnapshotResult,
    TriggerOutcome,
)
from .filters import is_path_in_selected_projects
from .age import age_cutoff, any_child_older_than, months_for_days
from .engine import RetentionEngine, coerce_action
from .snapshots import SNAPSHOT_SUFFIX, SnapshotCoupler, snapshot_path_for

__all__ = [
    # Models
    "WILDCARD",
    "Action",
    "CandidateOutcome",
    "CandidateStatus",
    "CleanupReport",
    "PolicyConfig",
    "RetentionResult",
    "SnapshotResult",
    "TriggerOutcome",
    # Project filter
    "is_path_in_selected_projects",
    # Age evaluator
    "age_cutoff",
    "any_child_older_than",
    "months_for_days",
    # Engine
    "RetentionEngine",
    "coerce_action",
    # Snapshots
    "SNAPSHOT_SUFFIX",
    "SnapshotCoupler",
    "snapshot_path_for",
]
