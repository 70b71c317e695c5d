from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..countries import list_countries
from ..deps import get_db, require_capability
from ..flyer import render_checkpoint_pdf
from ..models import Location
from ..reports import CSV_HEADER, build_report, report_csv_rows


logger = logging.getLogger("exports")

router = APIRouter(tags=["exports"])


def _stream_csv(rows: Iterable[dict], filename: str, header_fields: List[str]) -> StreamingResponse:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=header_fields)
    # Header is written even when there are no rows
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    buffer.seek(0)
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(iter([buffer.getvalue()]), media_type="text/csv", headers=headers)


@router.get("/hotspots.csv", dependencies=[Depends(require_capability("can_access_reports"))])
def export_hotspots(db: Session = Depends(get_db)):
    try:
        records = build_report(db)
    except SQLAlchemyError:
        logger.exception("hotspots export failed")
        return {"error": True}
    return _stream_csv(report_csv_rows(records), "hotspots.csv", header_fields=CSV_HEADER)


@router.get(
    "/generate/{checkpoint_key}/checkpoint.pdf",
    dependencies=[Depends(require_capability("can_create_checkpoints"))],
)
def export_checkpoint_pdf(
    checkpoint_key: str,
    alt_title: Optional[str] = Query(default=None),
    alt_help: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        location = db.execute(select(Location).where(Location.checkpoint_key == checkpoint_key)).scalar_one_or_none()
        countries = list_countries(db) if location is not None else []
    except SQLAlchemyError:
        # The flyer does not depend on the location record
        logger.exception("location lookup failed for flyer key=%s", checkpoint_key)
        location, countries = None, []
    pdf = render_checkpoint_pdf(checkpoint_key, location, countries, alt_title=alt_title, alt_help=alt_help)
    headers = {"Content-Disposition": "inline; filename=checkpoint.pdf"}
    return StreamingResponse(iter([pdf]), media_type="application/pdf", headers=headers)
