"""Signal model — created by the monitor, mutated only by the lifecycle manager."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"
    NONE = "NONE"


class SignalStatus(str, Enum):
    ACTIVE = "ACTIVE"
    TARGET_HIT = "TARGET_HIT"
    STOP_HIT = "STOP_HIT"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not SignalStatus.ACTIVE


class Priority(str, Enum):
    HIGH = "HIGH"
    NORMAL = "NORMAL"


class ScoreBreakdown(BaseModel):
    """Weighted multi-factor score for one candidate."""

    model_config = ConfigDict(frozen=True)

    technical_score: float = Field(ge=0, le=100)
    liquidity_score: float = Field(ge=0, le=100)
    volatility_score: float = Field(ge=0, le=100)
    price_action_score: float = Field(ge=0, le=100)
    total_score: float = Field(ge=0, le=100)
    direction: Direction
    probability: float = Field(ge=0.0, le=1.0)


class TargetLevels(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: Decimal
    target: Decimal
    stop: Decimal


def new_signal_id() -> str:
    return uuid.uuid4().hex


class Signal(BaseModel):
    """An entry/target/stop triple tracked until it resolves."""

    id: str = Field(default_factory=new_signal_id)
    symbol: str
    direction: Direction
    entry_price: Decimal
    current_price: Decimal
    target_price: Decimal
    stop_loss: Decimal
    timeframe: str = "1m"
    created_at: datetime
    expires_at: datetime
    score: float = Field(ge=0, le=100)
    probability: float = Field(ge=0.0, le=1.0)
    risk_reward_ratio: float
    status: SignalStatus = SignalStatus.ACTIVE
    priority: Priority = Priority.NORMAL
    reasons: list[str] = Field(default_factory=list)
    closed_at: datetime | None = None
    breakdown: ScoreBreakdown | None = None

    @property
    def is_active(self) -> bool:
        return not self.status.is_terminal
