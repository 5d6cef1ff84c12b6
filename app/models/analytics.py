"""Platform analytics snapshots and system logs."""

from sqlalchemy import String, Integer, DateTime, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .base import Base


class DailyAnalytics(Base):
    """Daily platform usage snapshot."""

    __tablename__ = "daily_analytics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[datetime] = mapped_column(DateTime, unique=True, index=True)
    total_users: Mapped[int] = mapped_column(Integer, default=0)
    active_users: Mapped[int] = mapped_column(Integer, default=0)
    new_users: Mapped[int] = mapped_column(Integer, default=0)
    daily_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    new_enrollments: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<DailyAnalytics(date={self.date})>"


class MonthlyAnalytics(Base):
    """Monthly rollup of daily analytics."""

    __tablename__ = "monthly_analytics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    year: Mapped[int] = mapped_column(Integer, index=True)
    month: Mapped[int] = mapped_column(Integer)  # 1-12
    total_users: Mapped[int] = mapped_column(Integer, default=0)
    new_users: Mapped[int] = mapped_column(Integer, default=0)
    revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=0)
    enrollments: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<MonthlyAnalytics({self.year}-{self.month:02d})>"


class SystemLog(Base):
    """Persisted application log entry."""

    __tablename__ = "system_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[str] = mapped_column(String(10), index=True)  # error, warn, info, ...
    category: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    message: Mapped[str] = mapped_column(Text)
    user_id: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<SystemLog(id={self.id}, level={self.level})>"
