"""Engine services: evaluation, lifecycle, replacement and monitoring."""

from signal_service.services.evaluator import Analysis, SignalEvaluator
from signal_service.services.lifecycle import (
    CheckOutcome,
    CheckResult,
    SignalLifecycleManager,
    TickResult,
)
from signal_service.services.monitor import CycleResult, SignalMonitor
from signal_service.services.replacement import ReplacementEngine, ReplacementResult

__all__ = [
    "Analysis",
    "CheckOutcome",
    "CheckResult",
    "CycleResult",
    "ReplacementEngine",
    "ReplacementResult",
    "SignalEvaluator",
    "SignalLifecycleManager",
    "SignalMonitor",
    "TickResult",
]
