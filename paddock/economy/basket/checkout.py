from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from paddock.db.repo.carts_repo import CartsRepo
from paddock.db.repo.horses_repo import HorsesRepo
from paddock.db.repo.renewals_repo import RenewalsRepo
from paddock.db.repo.users_repo import UsersRepo
from paddock.economy.basket.errors import (
    BasketTargetNotFoundError,
    BasketUserNotFoundError,
    EmptyBasketError,
    PromotionEligibilityChangedError,
)
from paddock.economy.basket.pricing import basket_subtotal, line_total, share_quantities
from paddock.economy.basket.types import CheckoutReceipt, ReceiptLine
from paddock.economy.basket.verification import verify_promotions
from paddock.economy.promotions.service import PromotionService
from paddock.economy.renewals.service import RenewalService
from paddock.economy.shares.service import ShareService
from paddock.economy.wallet.service import WalletService, wallet_offset

logger = structlog.get_logger(__name__)


class CheckoutService:
    @staticmethod
    async def checkout(
        session: AsyncSession,
        *,
        user_id: int,
        wallet_offset_requested_pence: int,
        confirm_promotion_changes: bool,
        now_utc: datetime,
    ) -> CheckoutReceipt:
        """Commits the open basket. The caller owns the transaction boundary.

        Every write below (wallet debit, ownerships, purchases, renewals, basket
        close) shares the caller's transaction, so any raised error leaves the
        basket open and the wallet untouched.
        """
        cart = await CartsRepo.get_open_for_user_for_update(session, user_id)
        if cart is None:
            raise EmptyBasketError
        items = await CartsRepo.list_items(session, cart.id)
        subtotal = basket_subtotal(items)
        if not items or subtotal <= 0:
            raise EmptyBasketError

        planned = share_quantities(items)
        # Horse locks serialize purchase inserts, so the promotion ranking read
        # below stays authoritative until commit.
        horses = await HorsesRepo.lock_by_ids(session, list(planned))
        issues = await verify_promotions(
            session,
            user_id=user_id,
            planned_quantities=planned,
            now_utc=now_utc,
        )
        if issues and not confirm_promotion_changes:
            logger.info(
                "checkout_promotion_confirmation_required",
                user_id=user_id,
                cart_id=cart.id,
                issues=[(issue.horse_id, issue.reason) for issue in issues],
            )
            raise PromotionEligibilityChangedError(issues)

        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise BasketUserNotFoundError

        balance = await WalletService.get_balance(session, user_id=user_id)
        wallet_used = wallet_offset(
            requested_pence=wallet_offset_requested_pence,
            balance_pence=balance,
            subtotal_pence=subtotal,
        )
        total_due = subtotal - wallet_used
        if wallet_used > 0:
            await WalletService.debit_for_checkout(
                session,
                user_id=user_id,
                cart_id=cart.id,
                amount_pence=wallet_used,
                now_utc=now_utc,
            )

        cycles = await RenewalsRepo.list_cycles_by_ids(
            session,
            [item.renew_cycle_id for item in items if item.renew_cycle_id is not None],
        )
        cycle_horses = await HorsesRepo.list_by_ids(session, [cycle.horse_id for cycle in cycles.values()])

        lines: list[ReceiptLine] = []
        for item in items:
            if item.item_type == "share":
                horse = horses.get(item.horse_id) if item.horse_id is not None else None
                if horse is None:
                    raise BasketTargetNotFoundError
                await ShareService.purchase_shares(
                    session,
                    user_id=user_id,
                    horse=horse,
                    qty=item.qty,
                    unit_price_pence=item.unit_price_pence,
                    source="cart",
                    metadata={
                        "source": "cart",
                        "cart_id": cart.id,
                        "unit_price": item.unit_price_pence,
                        "line_total": line_total(item),
                    },
                    now_utc=now_utc,
                )
                lines.append(
                    ReceiptLine(
                        item_type="share",
                        horse_id=horse.id,
                        horse_name=horse.name,
                        qty=item.qty,
                        unit_price_pence=item.unit_price_pence,
                        line_total_pence=line_total(item),
                    )
                )
                continue

            cycle = cycles.get(item.renew_cycle_id) if item.renew_cycle_id is not None else None
            if cycle is None:
                raise BasketTargetNotFoundError
            await RenewalService.record_renewal(
                session,
                user_id=user_id,
                renew_cycle_id=cycle.id,
                shares=item.qty,
                now_utc=now_utc,
            )
            cycle_horse = cycle_horses.get(cycle.horse_id)
            lines.append(
                ReceiptLine(
                    item_type="renewal",
                    horse_id=cycle.horse_id,
                    horse_name=cycle_horse.name if cycle_horse is not None else "",
                    qty=item.qty,
                    unit_price_pence=item.unit_price_pence,
                    line_total_pence=line_total(item),
                    renew_cycle_id=cycle.id,
                    term_label=cycle.term_label,
                )
            )

        await CartsRepo.delete_items(session, cart.id)
        cart.status = "closed"
        cart.closed_at = now_utc
        await session.flush()

        lines = await CheckoutService._with_promotion_outcome(
            session,
            user_id=user_id,
            lines=lines,
            now_utc=now_utc,
        )
        logger.info(
            "checkout_completed",
            user_id=user_id,
            cart_id=cart.id,
            subtotal_pence=subtotal,
            wallet_used_pence=wallet_used,
            total_due_pence=total_due,
            lines=len(lines),
        )
        return CheckoutReceipt(
            cart_id=cart.id,
            user_id=user_id,
            email=user.email,
            subtotal_pence=subtotal,
            wallet_used_pence=wallet_used,
            total_due_pence=total_due,
            lines=lines,
            acknowledged_issues=issues,
        )

    @staticmethod
    async def _with_promotion_outcome(
        session: AsyncSession,
        *,
        user_id: int,
        lines: list[ReceiptLine],
        now_utc: datetime,
    ) -> list[ReceiptLine]:
        # Purchases are already written; a failed lookup only blanks the outcome.
        outcomes: dict[int, tuple[bool | None, int | None]] = {}
        resolved: list[ReceiptLine] = []
        for line in lines:
            if line.item_type != "share":
                resolved.append(line)
                continue
            if line.horse_id not in outcomes:
                outcomes[line.horse_id] = await CheckoutService._promotion_outcome(
                    session,
                    user_id=user_id,
                    horse_id=line.horse_id,
                    now_utc=now_utc,
                )
            qualified, rank = outcomes[line.horse_id]
            resolved.append(
                ReceiptLine(
                    item_type=line.item_type,
                    horse_id=line.horse_id,
                    horse_name=line.horse_name,
                    qty=line.qty,
                    unit_price_pence=line.unit_price_pence,
                    line_total_pence=line.line_total_pence,
                    promotion_qualified=qualified,
                    promotion_rank=rank,
                )
            )
        return resolved

    @staticmethod
    async def _promotion_outcome(
        session: AsyncSession,
        *,
        user_id: int,
        horse_id: int,
        now_utc: datetime,
    ) -> tuple[bool | None, int | None]:
        try:
            async with session.begin_nested():
                promotion = await PromotionService.get_active_promotion(
                    session,
                    horse_id=horse_id,
                    now_utc=now_utc,
                )
                if promotion is None:
                    return False, None
                qualification = await PromotionService.user_qualifies(
                    session,
                    user_id=user_id,
                    promotion=promotion,
                )
        except SQLAlchemyError:
            logger.exception(
                "checkout_promotion_outcome_unavailable",
                horse_id=horse_id,
                user_id=user_id,
            )
            return None, None
        return qualification.qualified, qualification.rank
