from __future__ import annotations

import asyncio
from typing import Any

import structlog

from paddock.services.emails import forward_contact_message, send_checkout_emails
from paddock.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)


async def send_checkout_emails_async(payload: dict[str, Any]) -> dict[str, bool]:
    result = await send_checkout_emails(payload)
    logger.info("checkout_emails_finished", cart_id=payload.get("cart_id"), **result)
    return result


async def forward_contact_message_async(
    *,
    name: str,
    email: str,
    message: str,
    phone: str | None = None,
) -> bool:
    delivered = await forward_contact_message(name=name, email=email, message=message, phone=phone)
    logger.info("contact_message_finished", delivered=delivered)
    return delivered


@celery_app.task(name="paddock.workers.tasks.notifications.send_checkout_emails")
def send_checkout_emails_task(payload: dict[str, Any]) -> dict[str, bool]:
    return asyncio.run(send_checkout_emails_async(payload))


@celery_app.task(name="paddock.workers.tasks.notifications.forward_contact_message")
def forward_contact_message_task(name: str, email: str, message: str, phone: str | None = None) -> bool:
    return asyncio.run(
        forward_contact_message_async(name=name, email=email, message=message, phone=phone)
    )
