"""Database connection and table definitions."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import Column, DateTime, Float, Index, Numeric, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from signal_service.config import get_settings

Base = declarative_base()


class SignalTable(Base):
    """Trade signal records (full history, never deleted)."""

    __tablename__ = "signals"

    id = Column(String(36), primary_key=True)
    symbol = Column(String(20), nullable=False)
    direction = Column(String(4), nullable=False)  # 'buy' | 'sell'
    entry_price = Column(Numeric(20, 8), nullable=False)
    target_price = Column(Numeric(20, 8), nullable=False)
    stop_loss_price = Column(Numeric(20, 8), nullable=False)
    status = Column(String(10), nullable=False, default="active")
    success_rate = Column(Float, nullable=False)
    direction_score = Column(Float, nullable=False)
    timeframe_class = Column(String(10), nullable=False)
    risk_reward_ratio = Column(Numeric(20, 8), default=0)
    atr_at_signal = Column(Numeric(20, 8), default=0)
    created_at = Column(DateTime(timezone=True), nullable=False)
    closed_at = Column(DateTime(timezone=True), nullable=True)
    close_price = Column(Numeric(20, 8), nullable=True)
    replaces = Column(String(36), nullable=True)

    __table_args__ = (
        Index("idx_signals_status", "status"),
        Index("idx_signals_symbol_status", "symbol", "status"),
        Index("idx_signals_created_at", "created_at"),
    )


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        settings = get_settings()
        url = database_url or settings.database_url

        # Convert postgresql:// to postgresql+asyncpg://
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)

        engine_kwargs = {}
        if url.startswith("postgresql+asyncpg://"):
            # One monitor process: a small pool covers lifecycle fan-out
            engine_kwargs = {
                "pool_size": 10,
                "max_overflow": 10,
                "pool_pre_ping": True,
                "pool_recycle": 3600,
                "pool_timeout": 30,
                "connect_args": {"timeout": 10, "command_timeout": 60},
            }

        self.engine = create_async_engine(url, echo=settings.debug, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        """Create all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database connection."""
        await self.engine.dispose()


async def init_database(database_url: str | None = None) -> Database:
    """Create a database manager and its tables."""
    db = Database(database_url)
    await db.create_tables()
    return db
