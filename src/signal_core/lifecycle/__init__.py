"""Signal lifecycle — tracking open signals until they resolve."""

from signal_core.lifecycle.manager import (
    SignalLifecycleManager,
    evaluate_price,
    invoke_callback,
    utc_now,
)

__all__ = ["SignalLifecycleManager", "evaluate_price", "invoke_callback", "utc_now"]
