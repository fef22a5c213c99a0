from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, Response

from paddock.api.routes.access import assert_admin_access
from paddock.api.routes.horses import PromotionDisplayResponse, display_as_response
from paddock.db.session import SessionLocal
from paddock.economy.promotions.errors import PromotionNotExportableError, PromotionNotFoundError
from paddock.economy.promotions.export import export_filename, owner_emails_csv, qualifiers_csv
from paddock.economy.promotions.service import PromotionService
from paddock.economy.shares.errors import HorseNotFoundError
from paddock.economy.shares.service import ShareService

router = APIRouter(tags=["promotions"])
logger = structlog.get_logger(__name__)
CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


@router.get("/promotions/stats", response_model=PromotionDisplayResponse)
async def get_promotion_stats(
    response: Response,
    horse_id: int = Query(gt=0),
) -> PromotionDisplayResponse:
    display = await PromotionService.get_display_status(
        horse_id=horse_id,
        now_utc=datetime.now(timezone.utc),
    )
    response.headers["Cache-Control"] = "no-store"
    return display_as_response(display)


@router.get("/admin/promotions/{promotion_id}/export")
async def export_promotion_qualifiers(promotion_id: int, request: Request) -> Response:
    assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            rows = await PromotionService.list_qualifiers_for_export(
                session,
                promotion_id=promotion_id,
                now_utc=datetime.now(timezone.utc),
            )
    except PromotionNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_PROMOTION_NOT_FOUND"}) from exc
    except PromotionNotExportableError as exc:
        raise HTTPException(status_code=400, detail={"code": "E_PROMOTION_NOT_EXPORTABLE"}) from exc

    logger.info("promotion_qualifiers_exported", promotion_id=promotion_id, rows=len(rows))
    return Response(
        content=qualifiers_csv(rows),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(promotion_id)}"'},
    )


@router.get("/admin/horses/{horse_id}/owner-emails")
async def export_owner_emails(horse_id: int, request: Request) -> Response:
    assert_admin_access(request)

    try:
        async with SessionLocal.begin() as session:
            rows = await ShareService.list_owner_emails(session, horse_id=horse_id)
    except HorseNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_HORSE_NOT_FOUND"}) from exc
    if not rows:
        raise HTTPException(status_code=404, detail={"code": "E_NO_OWNERS"})

    return Response(
        content=owner_emails_csv(rows),
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="owner_emails_{horse_id}.csv"'},
    )
