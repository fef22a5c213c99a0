from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.models.cart_items import CartItem
from paddock.db.models.carts import Cart
from paddock.db.repo.carts_repo import CartsRepo
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.ownerships_repo import OwnershipsRepo
from paddock.db.repo.renewals_repo import RenewalsRepo
from paddock.economy.basket.errors import (
    BasketLineNotFoundError,
    BasketTargetNotFoundError,
    InvalidQuantityError,
    UnknownItemTypeError,
)
from paddock.economy.basket.pricing import (
    basket_subtotal,
    line_total,
    max_line_quantity,
    merged_quantity,
    resolve_unit_price,
)
from paddock.economy.basket.types import BasketLine, BasketView
from paddock.economy.renewals.errors import RenewalQuantityExceededError
from paddock.economy.renewals.service import RenewalService
from paddock.economy.shares.errors import SharesUnavailableError
from paddock.economy.wallet.service import WalletService

logger = structlog.get_logger(__name__)


async def _line_limit(
    session: AsyncSession,
    *,
    user_id: int,
    item_type: str,
    horse_id: int | None,
    renew_cycle_id: int | None,
    now_utc: datetime,
) -> int:
    maximum = max_line_quantity(item_type)
    if item_type == "renewal" and renew_cycle_id is not None:
        cycle = await RenewalService.get_open_cycle(
            session,
            renew_cycle_id=renew_cycle_id,
            now_utc=now_utc,
        )
        allowed = await RenewalService.renewable_shares(session, user_id=user_id, cycle=cycle)
        maximum = min(maximum, allowed)
    return maximum


async def _assert_share_capacity(session: AsyncSession, *, horse_id: int, qty: int) -> None:
    horse = await HorsesRepo.get_by_id(session, horse_id)
    if horse is None:
        raise BasketTargetNotFoundError
    sold = await OwnershipsRepo.sum_shares_for_horse(session, horse_id)
    remaining = max(0, horse.total_shares - sold)
    if qty > remaining:
        raise SharesUnavailableError(horse_id=horse_id, requested=qty, remaining=remaining)


def _as_line(item: CartItem, *, horse_name: str | None = None) -> BasketLine:
    return BasketLine(
        id=item.id,
        item_type=item.item_type,
        horse_id=item.horse_id,
        renew_cycle_id=item.renew_cycle_id,
        qty=item.qty,
        unit_price_pence=item.unit_price_pence,
        line_total_pence=line_total(item),
        horse_name=horse_name,
    )


class BasketService:
    @staticmethod
    async def get_or_create_open_basket(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> Cart:
        cart = await CartsRepo.get_open_for_user(session, user_id)
        if cart is not None:
            return cart

        try:
            async with session.begin_nested():
                cart = await CartsRepo.create_open(session, user_id=user_id, now_utc=now_utc)
        except IntegrityError:
            cart = await CartsRepo.get_open_for_user(session, user_id)
            if cart is None:
                raise
            return cart

        logger.info("basket_opened", user_id=user_id, cart_id=cart.id)
        return cart

    @staticmethod
    async def add_line(
        session: AsyncSession,
        *,
        user_id: int,
        item_type: str,
        target_id: int,
        qty: int,
        fallback_unit_price_pence: object | None,
        now_utc: datetime,
    ) -> BasketLine:
        if item_type not in ("share", "renewal"):
            raise UnknownItemTypeError
        if qty < 1:
            raise InvalidQuantityError

        horse_id: int | None = None
        renew_cycle_id: int | None = None
        if item_type == "share":
            horse = await HorsesRepo.get_by_id(session, target_id)
            if horse is None:
                raise BasketTargetNotFoundError
            horse_id = horse.id
            authoritative_price = horse.share_price_pence
        else:
            cycle = await RenewalsRepo.get_cycle(session, target_id)
            if cycle is None:
                raise BasketTargetNotFoundError
            renew_cycle_id = cycle.id
            authoritative_price = cycle.price_per_share_pence

        unit_price = resolve_unit_price(
            authoritative_pence=authoritative_price,
            fallback_pence=fallback_unit_price_pence,
        )
        maximum = await _line_limit(
            session,
            user_id=user_id,
            item_type=item_type,
            horse_id=horse_id,
            renew_cycle_id=renew_cycle_id,
            now_utc=now_utc,
        )
        if maximum < 1:
            raise RenewalQuantityExceededError(renew_cycle_id=target_id, requested=qty, allowed=0)

        cart = await BasketService.get_or_create_open_basket(session, user_id=user_id, now_utc=now_utc)
        existing = await CartsRepo.find_line_for_update(
            session,
            cart_id=cart.id,
            item_type=item_type,
            horse_id=horse_id,
            renew_cycle_id=renew_cycle_id,
        )
        new_qty = merged_quantity(
            existing=existing.qty if existing is not None else 0,
            added=qty,
            maximum=maximum,
        )
        if horse_id is not None:
            await _assert_share_capacity(session, horse_id=horse_id, qty=new_qty)

        if existing is None:
            try:
                async with session.begin_nested():
                    existing = await CartsRepo.add_item(
                        session,
                        item=CartItem(
                            cart_id=cart.id,
                            item_type=item_type,
                            horse_id=horse_id,
                            renew_cycle_id=renew_cycle_id,
                            qty=new_qty,
                            unit_price_pence=unit_price,
                            created_at=now_utc,
                            updated_at=now_utc,
                        ),
                    )
            except IntegrityError:
                existing = await CartsRepo.find_line_for_update(
                    session,
                    cart_id=cart.id,
                    item_type=item_type,
                    horse_id=horse_id,
                    renew_cycle_id=renew_cycle_id,
                )
                if existing is None:
                    raise
                existing.qty = merged_quantity(existing=existing.qty, added=qty, maximum=maximum)
                existing.updated_at = now_utc
        else:
            existing.qty = new_qty
            existing.updated_at = now_utc

        await session.flush()
        logger.info(
            "basket_line_added",
            user_id=user_id,
            cart_id=cart.id,
            item_type=item_type,
            target_id=target_id,
            qty=existing.qty,
        )
        return _as_line(existing)

    @staticmethod
    async def update_line_quantity(
        session: AsyncSession,
        *,
        user_id: int,
        line_id: int,
        qty: int,
        now_utc: datetime,
    ) -> BasketLine:
        if qty < 1:
            raise InvalidQuantityError

        cart = await CartsRepo.get_open_for_user(session, user_id)
        if cart is None:
            raise BasketLineNotFoundError
        item = await CartsRepo.get_item_for_update(session, cart_id=cart.id, item_id=line_id)
        if item is None:
            raise BasketLineNotFoundError

        maximum = await _line_limit(
            session,
            user_id=user_id,
            item_type=item.item_type,
            horse_id=item.horse_id,
            renew_cycle_id=item.renew_cycle_id,
            now_utc=now_utc,
        )
        if maximum < 1:
            raise RenewalQuantityExceededError(
                renew_cycle_id=item.renew_cycle_id or 0,
                requested=qty,
                allowed=0,
            )
        new_qty = min(qty, maximum)
        if item.horse_id is not None:
            await _assert_share_capacity(session, horse_id=item.horse_id, qty=new_qty)

        item.qty = new_qty
        item.updated_at = now_utc
        await session.flush()
        return _as_line(item)

    @staticmethod
    async def remove_line(session: AsyncSession, *, user_id: int, line_id: int) -> None:
        cart = await CartsRepo.get_open_for_user(session, user_id)
        if cart is None:
            raise BasketLineNotFoundError
        deleted = await CartsRepo.delete_item(session, cart_id=cart.id, item_id=line_id)
        if deleted == 0:
            raise BasketLineNotFoundError

    @staticmethod
    async def get_basket(session: AsyncSession, *, user_id: int) -> BasketView:
        balance = await WalletService.get_balance(session, user_id=user_id)
        cart = await CartsRepo.get_open_for_user(session, user_id)
        if cart is None:
            return BasketView(cart_id=None, lines=[], subtotal_pence=0, wallet_balance_pence=balance)

        items = await CartsRepo.list_items(session, cart.id)
        cycles = await RenewalsRepo.list_cycles_by_ids(
            session,
            [item.renew_cycle_id for item in items if item.renew_cycle_id is not None],
        )
        horse_ids = [item.horse_id for item in items if item.horse_id is not None]
        horse_ids.extend(cycle.horse_id for cycle in cycles.values())
        horses = await HorsesRepo.list_by_ids(session, horse_ids)

        lines: list[BasketLine] = []
        for item in items:
            horse_id = item.horse_id
            if horse_id is None and item.renew_cycle_id in cycles:
                horse_id = cycles[item.renew_cycle_id].horse_id
            horse = horses.get(horse_id) if horse_id is not None else None
            lines.append(_as_line(item, horse_name=horse.name if horse is not None else None))

        return BasketView(
            cart_id=cart.id,
            lines=lines,
            subtotal_pence=basket_subtotal(items),
            wallet_balance_pence=balance,
        )
