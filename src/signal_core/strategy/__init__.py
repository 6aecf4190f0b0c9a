"""Scoring pipeline — indicators, market structure, scorer and target levels."""

from signal_core.strategy.pipeline import Evaluation, evaluate_snapshot
from signal_core.strategy.scoring import Scorer
from signal_core.strategy.targets import calculate_targets, check_levels, risk_reward_ratio

__all__ = [
    "Evaluation",
    "Scorer",
    "calculate_targets",
    "check_levels",
    "evaluate_snapshot",
    "risk_reward_ratio",
]
