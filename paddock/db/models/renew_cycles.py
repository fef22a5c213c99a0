from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class RenewCycle(Base):
    __tablename__ = "renew_cycles"
    __table_args__ = (
        CheckConstraint("status IN ('draft','open','closed')", name="ck_renew_cycles_status"),
        CheckConstraint(
            "price_per_share_pence IS NULL OR price_per_share_pence > 0",
            name="ck_renew_cycles_price_positive",
        ),
        Index("idx_renew_cycles_horse", "horse_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    horse_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=False)
    term_label: Mapped[str] = mapped_column(Text, nullable=False)
    opens_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closes_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    price_per_share_pence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'draft'"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
