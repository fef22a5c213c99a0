from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class WalletTransaction(Base):
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint("amount_pence > 0", name="ck_wallet_transactions_amount_positive"),
        CheckConstraint("type IN ('credit','debit')", name="ck_wallet_transactions_type"),
        CheckConstraint(
            "status IN ('pending','posted','void')",
            name="ck_wallet_transactions_status",
        ),
        Index("idx_wallet_transactions_user_status", "user_id", "status"),
        Index("idx_wallet_transactions_cart", "cart_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    type: Mapped[str] = mapped_column(String(8), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    amount_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    cart_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("carts.id"), nullable=True)
    horse_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
