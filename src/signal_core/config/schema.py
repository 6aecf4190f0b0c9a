"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, model_validator


class ExchangeConfig(BaseModel):
    base_url: str = "https://api.binance.com"
    timeout_s: float = Field(default=10.0, gt=0)
    candle_interval: str = "1m"
    candle_limit: int = Field(default=100, gt=0, le=1000)
    trend_interval: str = "5m"
    trend_limit: int = Field(default=50, gt=0, le=1000)
    depth_limit: int = Field(default=20, gt=0)


class DatabaseConfig(BaseModel):
    # None keeps signals in memory only
    url: str | None = None


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "json"


class RiskRewardBand(BaseModel):
    """Acceptance band for |target - entry| / |stop - entry| at creation time."""

    min: float = Field(default=1.3, gt=0)
    max: float = Field(default=2.0, gt=0)

    @model_validator(mode="after")
    def _check_order(self) -> RiskRewardBand:
        if self.min > self.max:
            raise ValueError(f"risk/reward band min {self.min} exceeds max {self.max}")
        return self

    def contains(self, ratio: float) -> bool:
        return self.min <= ratio <= self.max


class MonitorConfig(BaseModel):
    cycle_interval_s: float = Field(default=300.0, gt=0)
    poll_interval_s: float = Field(default=0.5, gt=0)
    score_threshold: float = Field(default=75.0, ge=0, le=100)
    risk_reward: RiskRewardBand = Field(default_factory=RiskRewardBand)
    max_active_signals: int = Field(default=10, gt=0)
    signal_ttl_s: float = Field(default=300.0, gt=0)
    timeframe: str = "1m"
    max_concurrency: int = Field(default=8, gt=0)
    max_inflight_fetches: int = Field(default=3, gt=0)


class IndicatorConfig(BaseModel):
    rsi_period: int = Field(default=14, gt=1)
    overbought: float = Field(default=70.0, gt=50, le=100)
    oversold: float = Field(default=30.0, ge=0, lt=50)
    macd_fast: int = Field(default=12, gt=0)
    macd_slow: int = Field(default=26, gt=0)
    macd_signal: int = Field(default=9, gt=0)
    bb_period: int = Field(default=20, gt=1)
    bb_k: float = Field(default=2.0, gt=0)
    momentum_period: int = Field(default=10, gt=0)
    volume_period: int = Field(default=20, gt=0)

    @model_validator(mode="after")
    def _check_macd(self) -> IndicatorConfig:
        if self.macd_fast >= self.macd_slow:
            raise ValueError(
                f"macd_fast ({self.macd_fast}) must be shorter than macd_slow ({self.macd_slow})"
            )
        return self

    @property
    def min_candles(self) -> int:
        """Shortest candle series on which every indicator is defined."""
        return max(
            self.rsi_period + 1,
            self.macd_slow + self.macd_signal,
            self.bb_period,
            self.momentum_period + 1,
            self.volume_period + 1,
        )


class StructureConfig(BaseModel):
    volatility_window: int = Field(default=14, gt=1)
    depth_levels: int = Field(default=20, gt=0)
    max_book_age_s: float = Field(default=5.0, gt=0)
    price_action_lookback: int = Field(default=5, gt=0)


class ScoringWeights(BaseModel):
    technical: float = Field(default=0.4, ge=0)
    liquidity: float = Field(default=0.2, ge=0)
    volatility: float = Field(default=0.2, ge=0)
    price_action: float = Field(default=0.2, ge=0)

    @model_validator(mode="after")
    def _check_sum(self) -> ScoringWeights:
        total = self.technical + self.liquidity + self.volatility + self.price_action
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"scoring weights must sum to 1.0, got {total:.6f}")
        return self


class ScoringConfig(BaseModel):
    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    # Policy ceiling on the reported probability, not a statistical estimate
    probability_cap: float = Field(default=0.85, gt=0, le=1)
    # Volatility range (fraction of price) considered ideal for short-horizon setups
    volatility_low: float = Field(default=0.0005, gt=0)
    volatility_high: float = Field(default=0.003, gt=0)
    # Spread (basis points) at which the spread component reaches zero
    max_spread_bps: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def _check_volatility_band(self) -> ScoringConfig:
        if self.volatility_low >= self.volatility_high:
            raise ValueError("volatility_low must be below volatility_high")
        return self


class TargetConfig(BaseModel):
    max_stop_pct: float = Field(default=0.0005, gt=0)
    vol_factor: float = Field(default=0.3, gt=0)
    risk_reward_target: float = Field(default=1.5, gt=0)
    # Max-move ceiling: conservative bound on target distance during volatility spikes
    max_move_pct: float = Field(default=0.001, gt=0)
    max_move_vol_factor: float = Field(default=0.5, gt=0)


class AppConfig(BaseModel):
    symbols: list[str] = Field(
        default_factory=lambda: ["BTCUSDT", "ETHUSDT", "BNBUSDT", "SOLUSDT", "XRPUSDT"],
        min_length=1,
    )
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    indicators: IndicatorConfig = Field(default_factory=IndicatorConfig)
    structure: StructureConfig = Field(default_factory=StructureConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    targets: TargetConfig = Field(default_factory=TargetConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def _check_sections_agree(self) -> AppConfig:
        needed = max(self.indicators.min_candles, self.structure.volatility_window + 1)
        if self.exchange.candle_limit < needed:
            raise ValueError(
                f"exchange.candle_limit ({self.exchange.candle_limit}) is below the "
                f"{needed} candles the indicators and volatility window need"
            )
        if not self.monitor.risk_reward.contains(self.targets.risk_reward_target):
            band = self.monitor.risk_reward
            raise ValueError(
                f"targets.risk_reward_target ({self.targets.risk_reward_target}) lies outside "
                f"the acceptance band [{band.min}, {band.max}]"
            )
        return self
