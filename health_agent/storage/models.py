"""
Table definitions for the user ledger and the daily stats archive.
"""

from typing import Optional

from sqlalchemy import BigInteger, Float, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class User(Base):
    """Live per-user counters for the current day plus latest weight."""

    __tablename__ = "users"

    # Telegram user id, never generated here
    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    steps: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    water: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    def __repr__(self) -> str:
        return f"<User id={self.id} weight={self.weight} steps={self.steps} water={self.water}>"


class DailyStat(Base):
    """Append-only snapshot of one user's counters at a rollover."""

    __tablename__ = "daily_stats"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    water: Mapped[int] = mapped_column(Integer, nullable=False)
    steps: Mapped[int] = mapped_column(Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "date": self.date,
            "water": self.water,
            "steps": self.steps,
        }
