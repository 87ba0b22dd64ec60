"""Signal data models."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from signal_core.errors import InvalidTransitionError


class Direction(str, Enum):
    """Trade direction."""

    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        """+1 for BUY, -1 for SELL."""
        return 1 if self is Direction.BUY else -1


class SignalStatus(str, Enum):
    """Signal lifecycle status."""

    ACTIVE = "active"
    COMPLETED = "completed"  # Target hit
    CANCELLED = "cancelled"  # Stop loss hit

    @property
    def is_terminal(self) -> bool:
        return self is not SignalStatus.ACTIVE


class TimeframeClass(str, Enum):
    """Expected holding horizon of a signal."""

    DAY = "day"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


def _new_signal_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Signal(BaseModel):
    """Trade recommendation with fixed levels and a lifecycle status.

    Signals are immutable; a status change produces a new copy via
    :meth:`close`. A terminal signal is never changed again.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_signal_id)
    symbol: str
    direction: Direction
    entry_price: Decimal
    target_price: Decimal
    stop_loss_price: Decimal
    status: SignalStatus = SignalStatus.ACTIVE
    success_rate: float = Field(ge=0, le=100)
    direction_score: float = Field(ge=0, le=100)
    timeframe_class: TimeframeClass
    risk_reward_ratio: Decimal = Decimal("0")
    atr_at_signal: Decimal = Decimal("0")
    created_at: datetime = Field(default_factory=_utcnow)
    closed_at: datetime | None = None
    close_price: Decimal | None = None
    replaces: str | None = None  # ID of the closed signal this one replaced

    @model_validator(mode="after")
    def _check_levels(self):
        if min(self.entry_price, self.target_price, self.stop_loss_price) <= 0:
            raise ValueError("entry, target and stop prices must be positive")
        if self.direction == Direction.BUY:
            if not self.stop_loss_price < self.entry_price < self.target_price:
                raise ValueError(
                    "BUY signal requires stop_loss_price < entry_price < target_price"
                )
        elif not self.target_price < self.entry_price < self.stop_loss_price:
            raise ValueError(
                "SELL signal requires target_price < entry_price < stop_loss_price"
            )
        return self

    @property
    def is_active(self) -> bool:
        return self.status == SignalStatus.ACTIVE

    @property
    def risk_amount(self) -> Decimal:
        """Get the risk amount (distance to stop loss)."""
        if self.direction == Direction.BUY:
            return self.entry_price - self.stop_loss_price
        return self.stop_loss_price - self.entry_price

    @property
    def reward_amount(self) -> Decimal:
        """Get the reward amount (distance to target)."""
        if self.direction == Direction.BUY:
            return self.target_price - self.entry_price
        return self.entry_price - self.target_price

    def check_price(self, price: Decimal) -> SignalStatus:
        """Return the status this signal should have at ``price``.

        Terminal signals always report their current status.
        """
        if self.status.is_terminal:
            return self.status

        if self.direction == Direction.BUY:
            if price >= self.target_price:
                return SignalStatus.COMPLETED
            if price <= self.stop_loss_price:
                return SignalStatus.CANCELLED
        else:
            if price <= self.target_price:
                return SignalStatus.COMPLETED
            if price >= self.stop_loss_price:
                return SignalStatus.CANCELLED

        return SignalStatus.ACTIVE

    def close(
        self,
        status: SignalStatus,
        price: Decimal | None = None,
        closed_at: datetime | None = None,
    ) -> "Signal":
        """Return a copy moved to a terminal status.

        Raises:
            InvalidTransitionError: If this signal is already terminal or
                ``status`` is not a terminal status.
        """
        if self.status.is_terminal or not status.is_terminal:
            raise InvalidTransitionError(self.id, self.status.value, status.value)

        return self.model_copy(
            update={
                "status": status,
                "close_price": price,
                "closed_at": closed_at or _utcnow(),
            }
        )
