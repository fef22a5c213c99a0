from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from paddock.core.money import format_pence

PROMOTION_FOOTNOTE = "If you have qualified for a promotion, we'll contact you in due course."


@dataclass(frozen=True, slots=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def friendly_name(raw: str | None) -> str:
    """Best-effort greeting name from a full name or an email address."""
    value = (raw or "").strip()
    if not value:
        return "Owner"
    base = value.split("@", maxsplit=1)[0] if "@" in value else value
    base = re.sub(r"[._-]+", " ", base)
    base = re.sub(r"\d+", " ", base)
    base = re.sub(r"\s+", " ", base).strip()
    if not base:
        return "Owner"
    return " ".join(word[:1].upper() + word[1:].lower() for word in base.split(" "))


def _shell(*, title: str, body_html: str, site_name: str, site_url: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!doctype html><html><head><meta charset=\"utf-8\">"
        f"<title>{html.escape(title)}</title></head>"
        "<body style=\"margin:0;padding:0;background:#f6f7f9;font-family:Helvetica,Arial,sans-serif;color:#111;\">"
        "<table role=\"presentation\" width=\"100%\" cellspacing=\"0\" cellpadding=\"0\" style=\"padding:24px 0;\">"
        "<tr><td align=\"center\">"
        "<table role=\"presentation\" width=\"600\" style=\"max-width:600px;background:#fff;"
        "border:1px solid #e6e8eb;border-radius:12px;\">"
        f"<tr><td style=\"padding:24px;\">{body_html}</td></tr>"
        "<tr><td style=\"padding:16px 24px;background:#f9fafb;color:#6b7280;font-size:12px;text-align:center;\">"
        f"&copy; {year} {html.escape(site_name)} &middot; "
        f"<a href=\"{html.escape(site_url)}\" style=\"color:#6b7280;\">{html.escape(site_url)}</a>"
        "</td></tr></table></td></tr></table></body></html>"
    )


def _row(label: str, value: str) -> str:
    return (
        f"<tr><td style=\"padding:8px 0;color:#6b7280;\">{html.escape(label)}</td>"
        f"<td style=\"padding:8px 0;text-align:right;\"><strong>{html.escape(value)}</strong></td></tr>"
    )


def render_purchase_email(
    payload: dict[str, Any],
    *,
    site_name: str,
    site_url: str,
) -> RenderedEmail:
    lines = [line for line in payload["lines"] if line["item_type"] == "share"]
    display = friendly_name(payload.get("name") or payload.get("email"))
    horse_names = ", ".join(dict.fromkeys(line["horse_name"] for line in lines))
    subject = f"Thanks for your purchase: {horse_names}"

    table_rows: list[str] = []
    text_rows: list[str] = []
    for line in lines:
        table_rows.append(_row(f"{line['horse_name']} shares", f"{line['qty']:,}"))
        table_rows.append(_row("Price per share", format_pence(line["unit_price_pence"])))
        table_rows.append(_row("Line total", format_pence(line["line_total_pence"])))
        text_rows.extend(
            [
                f"{line['horse_name']}: {line['qty']} share(s) at {format_pence(line['unit_price_pence'])}",
                f"Line total: {format_pence(line['line_total_pence'])}",
            ]
        )

    summary = [
        ("Subtotal", format_pence(payload["subtotal_pence"])),
        ("Wallet credit used", format_pence(payload["wallet_used_pence"])),
        ("Amount due", format_pence(payload["total_due_pence"])),
    ]
    table_rows.extend(_row(label, value) for label, value in summary)
    text_rows.extend(f"{label}: {value}" for label, value in summary)

    body_html = (
        f"<p>Dear {html.escape(display)},</p>"
        f"<p>Thank you for purchasing shares in <strong>{html.escape(horse_names)}</strong>!</p>"
        "<table role=\"presentation\" style=\"margin:16px 0;border-collapse:collapse;width:100%;\">"
        f"{''.join(table_rows)}</table>"
        "<p>You can view your holdings and updates anytime in your owner portal.</p>"
        f"<p>{html.escape(PROMOTION_FOOTNOTE)}</p>"
        f"<p>Warm regards,<br/>The {html.escape(site_name)} Team</p>"
    )
    text = "\n".join(
        [
            f"Dear {display},",
            "",
            f"Thank you for purchasing shares in {horse_names}!",
            "",
            *text_rows,
            "",
            "You can view your holdings and updates anytime in your owner portal.",
            PROMOTION_FOOTNOTE,
            "",
            "Warm regards,",
            f"The {site_name} Team",
        ]
    )
    return RenderedEmail(
        subject=subject,
        html=_shell(title=subject, body_html=body_html, site_name=site_name, site_url=site_url),
        text=text,
    )


def render_renewal_email(
    payload: dict[str, Any],
    *,
    site_name: str,
    site_url: str,
) -> RenderedEmail:
    lines = [line for line in payload["lines"] if line["item_type"] == "renewal"]
    display = friendly_name(payload.get("name") or payload.get("email"))
    horse_names = ", ".join(dict.fromkeys(line["horse_name"] for line in lines))
    subject = f"Renewal confirmed: {horse_names}"

    table_rows: list[str] = []
    text_rows: list[str] = []
    for line in lines:
        term = line.get("term_label") or "Next term"
        table_rows.append(_row(f"{line['horse_name']} ({term})", f"{line['qty']:,} share(s)"))
        table_rows.append(_row("Line total", format_pence(line["line_total_pence"])))
        text_rows.append(
            f"{line['horse_name']} ({term}): {line['qty']} share(s), {format_pence(line['line_total_pence'])}"
        )

    body_html = (
        f"<p>Dear {html.escape(display)},</p>"
        "<p>Thank you for renewing your shares. Your renewal is confirmed.</p>"
        "<table role=\"presentation\" style=\"margin:16px 0;border-collapse:collapse;width:100%;\">"
        f"{''.join(table_rows)}</table>"
        f"<p>Warm regards,<br/>The {html.escape(site_name)} Team</p>"
    )
    text = "\n".join(
        [
            f"Dear {display},",
            "",
            "Thank you for renewing your shares. Your renewal is confirmed.",
            "",
            *text_rows,
            "",
            "Warm regards,",
            f"The {site_name} Team",
        ]
    )
    return RenderedEmail(
        subject=subject,
        html=_shell(title=subject, body_html=body_html, site_name=site_name, site_url=site_url),
        text=text,
    )


def render_contact_email(
    *,
    name: str,
    email: str,
    message: str,
    site_name: str,
    phone: str | None = None,
) -> RenderedEmail:
    subject = f"New contact form message from {name}"
    escaped_message = html.escape(message).replace("\n", "<br/>")
    phone_html = f"<p><strong>Phone:</strong> {html.escape(phone)}</p>" if phone else ""
    body_html = (
        f"<p><strong>Name:</strong> {html.escape(name)}</p>"
        f"<p><strong>Email:</strong> {html.escape(email)}</p>"
        f"{phone_html}"
        f"<p><strong>Message:</strong><br/>{escaped_message}</p>"
    )
    phone_line = f"Phone: {phone}\n" if phone else ""
    text = f"Name: {name}\nEmail: {email}\n{phone_line}\nMessage:\n{message}"
    return RenderedEmail(
        subject=subject,
        html=f"<html><body><h2>{html.escape(site_name)} contact form</h2>{body_html}</body></html>",
        text=text,
    )
