from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class BallotResult(Base):
    __tablename__ = "ballot_results"
    __table_args__ = (
        CheckConstraint("outcome IN ('winner','non_winner')", name="ck_ballot_results_outcome"),
        UniqueConstraint("ballot_id", "user_id", name="uq_ballot_results_ballot_user"),
        Index("idx_ballot_results_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    ballot_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("ballots.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    outcome: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
