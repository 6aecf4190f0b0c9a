"""Monitor orchestrator — scan cycles, candidate ranking, slot refill."""

from signal_core.orchestrator.runner import CycleReport, SignalMonitor, evaluate_symbol, rank_candidates
from signal_core.orchestrator.snapshot import build_snapshot

__all__ = ["CycleReport", "SignalMonitor", "build_snapshot", "evaluate_symbol", "rank_candidates"]
