from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import SQLAlchemyError

from paddock.db.repo.leads_repo import LeadsRepo
from paddock.db.session import SessionLocal
from paddock.workers.enqueue import enqueue_task
from paddock.workers.tasks.notifications import forward_contact_message_task

router = APIRouter(tags=["leads"])
logger = structlog.get_logger(__name__)
INTEREST_SOURCE_MAX_LENGTH = 200
LEAD_SOURCE_MAX_LENGTH = 300


class InterestRequest(BaseModel):
    email: EmailStr
    source: str | None = None


class LeadRequest(BaseModel):
    email: EmailStr
    name: str | None = Field(default=None, max_length=200)


class LeadResponse(BaseModel):
    ok: bool
    stored: bool


class ContactRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=64)
    message: str = Field(min_length=1, max_length=10000)


def _lead_source(request: Request) -> str:
    referer = request.headers.get("referer")
    if not referer:
        return "unknown"
    return referer[:LEAD_SOURCE_MAX_LENGTH]


@router.get("/api/interest")
async def interest_status() -> dict[str, object]:
    return {"ok": True, "method": "GET"}


@router.post("/api/interest")
async def register_interest(payload: InterestRequest) -> dict[str, bool]:
    email = str(payload.email).strip().lower()
    source = (payload.source or "home")[:INTEREST_SOURCE_MAX_LENGTH]
    async with SessionLocal.begin() as session:
        await LeadsRepo.upsert_interest(
            session,
            email=email,
            source=source,
            now_utc=datetime.now(timezone.utc),
        )

    logger.info("interest_registered", source=source)
    return {"ok": True}


@router.post("/api/lead", response_model=LeadResponse)
async def capture_lead(payload: LeadRequest, request: Request) -> LeadResponse:
    email = str(payload.email).strip().lower()
    try:
        async with SessionLocal.begin() as session:
            await LeadsRepo.upsert_lead(
                session,
                email=email,
                name=payload.name,
                source=_lead_source(request),
                now_utc=datetime.now(timezone.utc),
            )
    except (SQLAlchemyError, OSError):
        logger.warning("lead_store_skipped", exc_info=True)
        return LeadResponse(ok=True, stored=False)

    return LeadResponse(ok=True, stored=True)


@router.post("/api/contact")
async def submit_contact(payload: ContactRequest) -> dict[str, bool]:
    enqueued = await enqueue_task(
        forward_contact_message_task,
        event="contact_message",
        name=payload.name.strip(),
        email=str(payload.email),
        phone=payload.phone,
        message=payload.message,
    )
    if not enqueued:
        raise HTTPException(status_code=503, detail={"code": "E_CONTACT_UNAVAILABLE"})
    return {"ok": True}
