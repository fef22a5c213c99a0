from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class RenewResponse(Base):
    __tablename__ = "renew_responses"
    __table_args__ = (
        CheckConstraint("shares > 0", name="ck_renew_responses_shares_positive"),
        UniqueConstraint("user_id", "renew_cycle_id", name="uq_renew_responses_user_cycle"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    renew_cycle_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("renew_cycles.id"),
        nullable=False,
    )
    shares: Mapped[int] = mapped_column(Integer, nullable=False)
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
