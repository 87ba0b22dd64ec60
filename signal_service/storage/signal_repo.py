"""SQL-backed signal store."""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy import select, update

from signal_core.models.signal import Direction, Signal, SignalStatus, TimeframeClass
from signal_core.protocols import StatusUpdate
from signal_service.storage.database import Database, SignalTable

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; values are always written in UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlSignalStore:
    """Signal store on any SQLAlchemy async dialect.

    Status updates are conditional on the stored status still being ACTIVE,
    so two racing ticks can never both close the same signal.
    """

    def __init__(self, db: Database):
        self.db = db

    async def query(self, status: SignalStatus | None = None) -> list[Signal]:
        """Get signals, optionally filtered by status, oldest first."""
        async with self.db.session() as session:
            stmt = select(SignalTable)
            if status is not None:
                stmt = stmt.where(SignalTable.status == status.value)
            stmt = stmt.order_by(SignalTable.created_at.asc())

            result = await session.execute(stmt)
            rows = result.scalars().all()

            signals = []
            for row in rows:
                try:
                    signals.append(self._row_to_signal(row))
                except ValidationError as e:
                    logger.error(f"Skipping unreadable signal row {row.id}: {e}")
            return signals

    async def insert(self, signal: Signal) -> Signal:
        """Save a new signal record."""
        async with self.db.session() as session:
            session.add(
                SignalTable(
                    id=signal.id,
                    symbol=signal.symbol,
                    direction=signal.direction.value,
                    entry_price=signal.entry_price,
                    target_price=signal.target_price,
                    stop_loss_price=signal.stop_loss_price,
                    status=signal.status.value,
                    success_rate=signal.success_rate,
                    direction_score=signal.direction_score,
                    timeframe_class=signal.timeframe_class.value,
                    risk_reward_ratio=signal.risk_reward_ratio,
                    atr_at_signal=signal.atr_at_signal,
                    created_at=signal.created_at,
                    closed_at=signal.closed_at,
                    close_price=signal.close_price,
                    replaces=signal.replaces,
                )
            )
        return signal

    async def get_by_id(self, signal_id: str) -> Signal | None:
        """Get a signal by ID."""
        async with self.db.session() as session:
            stmt = select(SignalTable).where(SignalTable.id == signal_id)
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()

            if row is None:
                return None
            return self._row_to_signal(row)

    async def update_status(
        self,
        signal_id: str,
        new_status: SignalStatus,
        closed_at: datetime | None = None,
        close_price: Decimal | None = None,
    ) -> StatusUpdate:
        """Close an ACTIVE signal; CONFLICT if it is terminal or unknown."""
        if not new_status.is_terminal:
            raise ValueError(f"update_status requires a terminal status, got {new_status}")

        async with self.db.session() as session:
            stmt = (
                update(SignalTable)
                .where(
                    SignalTable.id == signal_id,
                    SignalTable.status == SignalStatus.ACTIVE.value,
                )
                .values(
                    status=new_status.value,
                    closed_at=closed_at or datetime.now(timezone.utc),
                    close_price=close_price,
                )
            )
            result = await session.execute(stmt)
            updated = result.rowcount

        if updated != 1:
            logger.warning(f"Status update conflict for signal {signal_id} -> {new_status.value}")
            return StatusUpdate.CONFLICT
        return StatusUpdate.SUCCESS

    def _row_to_signal(self, row: SignalTable) -> Signal:
        """Convert database row to Signal model."""
        return Signal(
            id=row.id,
            symbol=row.symbol,
            direction=Direction(row.direction),
            entry_price=Decimal(str(row.entry_price)),
            target_price=Decimal(str(row.target_price)),
            stop_loss_price=Decimal(str(row.stop_loss_price)),
            status=SignalStatus(row.status),
            success_rate=row.success_rate,
            direction_score=row.direction_score,
            timeframe_class=TimeframeClass(row.timeframe_class),
            risk_reward_ratio=Decimal(str(row.risk_reward_ratio)) if row.risk_reward_ratio else Decimal("0"),
            atr_at_signal=Decimal(str(row.atr_at_signal)) if row.atr_at_signal else Decimal("0"),
            created_at=_as_utc(row.created_at),
            closed_at=_as_utc(row.closed_at),
            close_price=Decimal(str(row.close_price)) if row.close_price is not None else None,
            replaces=row.replaces,
        )
