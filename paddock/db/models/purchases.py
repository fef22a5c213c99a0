from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class Purchase(Base):
    """Append-only share purchase event. Ordered by (created_at, id)."""

    __tablename__ = "purchases"
    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_purchases_qty_positive"),
        CheckConstraint("unit_price_pence > 0", name="ck_purchases_unit_price_positive"),
        CheckConstraint("source IN ('cart','detail_buy')", name="ck_purchases_source"),
        Index("idx_purchases_horse_created", "horse_id", "created_at", "id"),
        Index("idx_purchases_user_created", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    horse_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(16), nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("clock_timestamp()"),
    )
