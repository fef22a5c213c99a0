from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class Promotion(Base):
    __tablename__ = "promotions"
    __table_args__ = (
        CheckConstraint("quota >= 0", name="ck_promotions_quota_non_negative"),
        CheckConstraint("min_shares_required >= 0", name="ck_promotions_min_shares_non_negative"),
        CheckConstraint(
            "start_at IS NULL OR end_at IS NULL OR start_at <= end_at",
            name="ck_promotions_window",
        ),
        Index("idx_promotions_horse", "horse_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    horse_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    quota: Mapped[int] = mapped_column(Integer, nullable=False)
    min_shares_required: Mapped[int] = mapped_column(Integer, nullable=False)
    start_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    label: Mapped[str | None] = mapped_column(Text, nullable=True)
    reward: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
