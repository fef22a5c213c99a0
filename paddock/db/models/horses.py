from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class Horse(Base):
    __tablename__ = "horses"
    __table_args__ = (
        CheckConstraint("total_shares >= 0", name="ck_horses_total_shares_non_negative"),
        CheckConstraint(
            "share_price_pence IS NULL OR share_price_pence > 0",
            name="ck_horses_share_price_positive",
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    trainer: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_shares: Mapped[int] = mapped_column(Integer, nullable=False)
    share_price_pence: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
