from __future__ import annotations

from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.cart_items import CartItem
from paddock.db.models.carts import Cart


class CartsRepo:
    @staticmethod
    async def get_open_for_user(session: AsyncSession, user_id: int) -> Cart | None:
        stmt = (
            select(Cart)
            .where(Cart.user_id == user_id, Cart.status == "open")
            .order_by(Cart.created_at.desc(), Cart.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_open_for_user_for_update(session: AsyncSession, user_id: int) -> Cart | None:
        stmt = (
            select(Cart)
            .where(Cart.user_id == user_id, Cart.status == "open")
            .order_by(Cart.created_at.desc(), Cart.id.desc())
            .limit(1)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_open(session: AsyncSession, *, user_id: int, now_utc: datetime) -> Cart:
        cart = Cart(user_id=user_id, status="open", created_at=now_utc)
        session.add(cart)
        await session.flush()
        return cart

    @staticmethod
    async def list_items(session: AsyncSession, cart_id: int) -> list[CartItem]:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id).order_by(CartItem.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_item_for_update(
        session: AsyncSession,
        *,
        cart_id: int,
        item_id: int,
    ) -> CartItem | None:
        stmt = (
            select(CartItem)
            .where(CartItem.id == item_id, CartItem.cart_id == cart_id)
            .with_for_update()
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def find_line_for_update(
        session: AsyncSession,
        *,
        cart_id: int,
        item_type: str,
        horse_id: int | None,
        renew_cycle_id: int | None,
    ) -> CartItem | None:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id, CartItem.item_type == item_type)
        if item_type == "share":
            stmt = stmt.where(CartItem.horse_id == horse_id)
        else:
            stmt = stmt.where(CartItem.renew_cycle_id == renew_cycle_id)
        result = await session.execute(stmt.with_for_update())
        return result.scalar_one_or_none()

    @staticmethod
    async def add_item(session: AsyncSession, *, item: CartItem) -> CartItem:
        session.add(item)
        await session.flush()
        return item

    @staticmethod
    async def delete_item(session: AsyncSession, *, cart_id: int, item_id: int) -> int:
        stmt = delete(CartItem).where(CartItem.id == item_id, CartItem.cart_id == cart_id)
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def delete_items(session: AsyncSession, cart_id: int) -> int:
        result = await session.execute(delete(CartItem).where(CartItem.cart_id == cart_id))
        return result.rowcount or 0
