"""Exception types raised by the signal engine."""


class SignalEngineError(Exception):
    """Base class for signal engine errors."""


class InvalidTransitionError(SignalEngineError, ValueError):
    """Raised when a status change would leave a terminal state."""

    def __init__(self, signal_id: str, current: str, requested: str):
        self.signal_id = signal_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Signal {signal_id} cannot move from {current} to {requested}"
        )
