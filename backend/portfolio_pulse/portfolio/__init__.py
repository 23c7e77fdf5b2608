"""Portfolio valuation and the refresh pipeline.

Public API:
    SnapshotBuilder  - Values holdings and fires alerts
    RefreshPipeline  - Refresh/build/broadcast sequence and its scheduler
    round2           - Half-away-from-zero rounding to cents
"""

from .pipeline import PipelineState, RefreshPipeline
from .snapshot import SnapshotBuilder, alert_condition_met, round2, value_holding

__all__ = [
    "PipelineState",
    "RefreshPipeline",
    "SnapshotBuilder",
    "alert_condition_met",
    "round2",
    "value_holding",
]
