from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class Ballot(Base):
    __tablename__ = "ballots"
    __table_args__ = (
        CheckConstraint("ballot_type IN ('badge','stable')", name="ck_ballots_type"),
        CheckConstraint("status IN ('open','closed','drawn')", name="ck_ballots_status"),
        CheckConstraint("max_winners >= 1", name="ck_ballots_max_winners_positive"),
        CheckConstraint(
            "racecourse_allocation IS NULL OR racecourse_allocation >= 0",
            name="ck_ballots_racecourse_allocation_non_negative",
        ),
        Index("idx_ballots_horse", "horse_id"),
        Index("idx_ballots_status_cutoff", "status", "cutoff_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    horse_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=True)
    ballot_type: Mapped[str] = mapped_column(String(16), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    cutoff_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    max_winners: Mapped[int] = mapped_column(Integer, nullable=False)
    racecourse_allocation: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'open'"))
    drawn_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
