"""signal-core — multi-factor trade signal generation and live tracking."""

__version__ = "0.1.0"
