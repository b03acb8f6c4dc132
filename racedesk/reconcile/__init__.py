"""Record reconciliation, overlays and the per-race batch runner."""

from racedesk.reconcile.batch import (
    PipelineOptions,
    RaceInput,
    RaceReport,
    RaceStatus,
    process_race,
    reconcile_many,
)
from racedesk.reconcile.overlays import OverlayOutcome, apply_results, apply_scratchings
from racedesk.reconcile.reconciler import RaceReconciliation, merge_record, reconcile_race

__all__ = [
    "PipelineOptions",
    "RaceInput",
    "RaceReport",
    "RaceStatus",
    "process_race",
    "reconcile_many",
    "OverlayOutcome",
    "apply_results",
    "apply_scratchings",
    "RaceReconciliation",
    "merge_record",
    "reconcile_race",
]
