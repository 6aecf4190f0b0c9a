"""Target calculator — entry, stop-loss and take-profit levels.

Stop distance is the tighter of a fixed fraction of price and a fraction of
realized volatility. Target distance is the stop distance times the
risk/reward target, capped by a max-move ceiling derived from volatility.
The ceiling is a deliberate conservative bound against unrealistic targets
during volatility spikes; when it binds the resulting risk/reward drops and
the candidate may fall outside the acceptance band.
"""

from __future__ import annotations

from decimal import Decimal

from signal_core.config.schema import TargetConfig
from signal_core.errors import InvariantViolation
from signal_core.models import Direction, TargetLevels, Volatility


def _d(value: float) -> Decimal:
    return Decimal(str(value))


def calculate_targets(
    current_price: Decimal,
    volatility: Volatility,
    direction: Direction,
    config: TargetConfig | None = None,
    risk_reward_target: float | None = None,
) -> TargetLevels:
    """Derive entry/target/stop for a new signal entered at *current_price*.

    Raises:
        InvariantViolation: direction is NONE, the price is not positive, or
            the levels would break the stop < entry < target ordering.
    """
    config = config or TargetConfig()
    rr = risk_reward_target if risk_reward_target is not None else config.risk_reward_target

    if direction is Direction.NONE:
        raise InvariantViolation("cannot place targets without a direction")
    if current_price <= 0:
        raise InvariantViolation(f"non-positive price {current_price}")

    if volatility.known:
        stop_fraction = min(config.max_stop_pct, volatility.value * config.vol_factor)
        move_fraction = min(config.max_move_pct, volatility.value * config.max_move_vol_factor)
    else:
        stop_fraction = config.max_stop_pct
        move_fraction = config.max_move_pct

    stop_distance = current_price * _d(stop_fraction)
    target_distance = min(stop_distance * _d(rr), current_price * _d(move_fraction))

    entry = current_price
    if direction is Direction.LONG:
        levels = TargetLevels(entry=entry, target=entry + target_distance, stop=entry - stop_distance)
    else:
        levels = TargetLevels(entry=entry, target=entry - target_distance, stop=entry + stop_distance)

    check_levels(direction, levels)
    return levels


def check_levels(direction: Direction, levels: TargetLevels) -> None:
    """Raise InvariantViolation unless stop and target sit on opposite sides of entry."""
    if direction is Direction.LONG:
        ok = levels.stop < levels.entry < levels.target
    elif direction is Direction.SHORT:
        ok = levels.stop > levels.entry > levels.target
    else:
        ok = False
    if not ok:
        raise InvariantViolation(
            f"bad {direction.value} levels: stop={levels.stop} "
            f"entry={levels.entry} target={levels.target}"
        )


def risk_reward_ratio(levels: TargetLevels) -> float:
    """|target - entry| / |stop - entry|."""
    risk = abs(levels.stop - levels.entry)
    if risk == 0:
        raise InvariantViolation("zero stop distance")
    return float(abs(levels.target - levels.entry) / risk)
