from __future__ import annotations

import csv
import io
from collections.abc import Iterable

from paddock.economy.promotions.service import QualifierExportRow

QUALIFIER_CSV_HEADER = ("email", "user_id", "horse_id", "qualified_at")


def qualifiers_csv(rows: Iterable[QualifierExportRow]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(QUALIFIER_CSV_HEADER)
    for row in rows:
        writer.writerow([row.email, row.user_id, row.horse_id, row.qualified_at.isoformat()])
    return buffer.getvalue()


def owner_emails_csv(rows: Iterable[tuple[str, str]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(("Horse Name", "Email"))
    writer.writerows(rows)
    return buffer.getvalue()


def export_filename(promotion_id: int) -> str:
    return f"promotion_{promotion_id}_emails.csv"
