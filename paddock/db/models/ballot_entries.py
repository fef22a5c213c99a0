from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class BallotEntry(Base):
    __tablename__ = "ballot_entries"
    __table_args__ = (UniqueConstraint("ballot_id", "user_id", name="uq_ballot_entries_ballot_user"),)

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    ballot_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("ballots.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
