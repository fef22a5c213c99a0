from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class Ownership(Base):
    __tablename__ = "ownerships"
    __table_args__ = (
        CheckConstraint("shares > 0", name="ck_ownerships_shares_positive"),
        UniqueConstraint("user_id", "horse_id", name="uq_ownerships_user_horse"),
        Index("idx_ownerships_horse", "horse_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    horse_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=False)
    shares: Mapped[int] = mapped_column(Integer, nullable=False)
    renewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
