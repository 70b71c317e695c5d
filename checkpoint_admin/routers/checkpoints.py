from __future__ import annotations

"""
EMBED_SUMMARY: Checkpoint endpoints: register a location (issues its key), bulk scan upload, joined report.
EMBED_TAGS: checkpoints, locations, scans, reports, api
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..deps import get_db, require_capability
from ..registry import KeyGenerationError, create_location, record_scans
from ..reports import build_report
from ..schemas import (
    ErrorFlag,
    JoinedRecordOut,
    LocationCreate,
    LocationCreated,
    LocationOut,
    ReportResponse,
    ScanBatch,
)


logger = logging.getLogger("checkpoints")

router = APIRouter(prefix="/api", tags=["checkpoints"])


@router.post(
    "/location",
    response_model=LocationCreated,
    response_model_exclude_none=True,
    dependencies=[Depends(require_capability("can_create_checkpoints"))],
)
def location_create(payload: LocationCreate, db: Session = Depends(get_db)):
    try:
        location = create_location(
            db,
            country=payload.country,
            locale=payload.locale,
            name=payload.name,
            phone=payload.phone,
            email=payload.email,
            latitude=payload.latitude,
            longitude=payload.longitude,
        )
    except (SQLAlchemyError, KeyGenerationError):
        db.rollback()
        logger.exception("location create failed country=%s", payload.country)
        return {"error": True}
    return {"error": False, "checkpoint_key": location.checkpoint_key}


@router.post(
    "/checkpoints",
    response_model=ErrorFlag,
    dependencies=[Depends(require_capability("can_upload_checkpoints"))],
)
def checkpoints_upload(payload: ScanBatch, db: Session = Depends(get_db)):
    try:
        count = record_scans(db, ((c.key, c.timestamp) for c in payload.checkpoints))
    except SQLAlchemyError:
        logger.exception("scan upload failed batch_size=%s", len(payload.checkpoints))
        return {"error": True}
    logger.info("scans recorded count=%s", count)
    return {"error": False}


@router.get(
    "/checkpoints/locations",
    response_model=ReportResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_capability("can_access_reports"))],
)
def checkpoints_locations(db: Session = Depends(get_db)):
    try:
        records = build_report(db)
    except SQLAlchemyError:
        logger.exception("report aggregation failed")
        return {"error": True}
    return {
        "error": False,
        "checkpoints": [
            JoinedRecordOut(key=r.checkpoint_key, timestamp=r.timestamp, location=LocationOut.model_validate(r.location))
            for r in records
        ],
    }
