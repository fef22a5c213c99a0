from __future__ import annotations

from dataclasses import asdict
from typing import Any

import httpx
import structlog

from paddock.core.config import get_settings
from paddock.economy.basket.types import CheckoutReceipt
from paddock.services.email_templates import (
    RenderedEmail,
    render_contact_email,
    render_purchase_email,
    render_renewal_email,
)

logger = structlog.get_logger(__name__)
EMAIL_HTTP_TIMEOUT_SECONDS = 10.0


def receipt_payload(receipt: CheckoutReceipt, *, name: str | None = None) -> dict[str, Any]:
    return {
        "cart_id": receipt.cart_id,
        "user_id": receipt.user_id,
        "email": receipt.email,
        "name": name,
        "subtotal_pence": receipt.subtotal_pence,
        "wallet_used_pence": receipt.wallet_used_pence,
        "total_due_pence": receipt.total_due_pence,
        "lines": [asdict(line) for line in receipt.lines],
    }


async def send_email(
    *,
    to: str,
    rendered: RenderedEmail,
    event: str,
    reply_to: str | None = None,
) -> bool:
    settings = get_settings()
    if not settings.email_api_key or not to:
        logger.warning("email_delivery_skipped", email_event=event, reason="not_configured")
        return False

    body: dict[str, Any] = {
        "from": settings.email_from,
        "to": [to],
        "subject": rendered.subject,
        "html": rendered.html,
        "text": rendered.text,
    }
    if reply_to:
        body["reply_to"] = reply_to

    try:
        async with httpx.AsyncClient(timeout=EMAIL_HTTP_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.email_api_url,
                json=body,
                headers={"Authorization": f"Bearer {settings.email_api_key}"},
            )
            response.raise_for_status()
    except Exception:
        logger.exception("email_delivery_failed", email_event=event)
        return False

    logger.info("email_delivered", email_event=event)
    return True


async def send_checkout_emails(payload: dict[str, Any]) -> dict[str, bool]:
    settings = get_settings()
    item_types = {line["item_type"] for line in payload["lines"]}
    sent: dict[str, bool] = {}
    if "share" in item_types:
        sent["purchase"] = await send_email(
            to=payload["email"],
            rendered=render_purchase_email(payload, site_name=settings.site_name, site_url=settings.site_url),
            event="purchase_confirmation",
        )
    if "renewal" in item_types:
        sent["renewal"] = await send_email(
            to=payload["email"],
            rendered=render_renewal_email(payload, site_name=settings.site_name, site_url=settings.site_url),
            event="renewal_confirmation",
        )
    return sent


async def forward_contact_message(
    *,
    name: str,
    email: str,
    message: str,
    phone: str | None = None,
) -> bool:
    settings = get_settings()
    return await send_email(
        to=settings.contact_to_email,
        rendered=render_contact_email(
            name=name,
            email=email,
            message=message,
            site_name=settings.site_name,
            phone=phone,
        ),
        event="contact_message",
        reply_to=email,
    )
