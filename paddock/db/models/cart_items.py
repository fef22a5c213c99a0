from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from paddock.db.models.base import Base


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        CheckConstraint("item_type IN ('share','renewal')", name="ck_cart_items_item_type"),
        CheckConstraint(
            "(item_type = 'share' AND horse_id IS NOT NULL AND renew_cycle_id IS NULL) OR "
            "(item_type = 'renewal' AND renew_cycle_id IS NOT NULL AND horse_id IS NULL)",
            name="ck_cart_items_target",
        ),
        CheckConstraint("qty >= 1", name="ck_cart_items_qty_positive"),
        CheckConstraint("unit_price_pence > 0", name="ck_cart_items_unit_price_positive"),
        Index("idx_cart_items_cart", "cart_id"),
        Index(
            "uq_cart_items_cart_share_horse",
            "cart_id",
            "horse_id",
            unique=True,
            postgresql_where=text("item_type = 'share'"),
        ),
        Index(
            "uq_cart_items_cart_renewal_cycle",
            "cart_id",
            "renew_cycle_id",
            unique=True,
            postgresql_where=text("item_type = 'renewal'"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    cart_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("carts.id", ondelete="CASCADE"),
        nullable=False,
    )
    item_type: Mapped[str] = mapped_column(String(16), nullable=False)
    horse_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("horses.id"), nullable=True)
    renew_cycle_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("renew_cycles.id"),
        nullable=True,
    )
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_pence: Mapped[int] = mapped_column(Integer, nullable=False)
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
