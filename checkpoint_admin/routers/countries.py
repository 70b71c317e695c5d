from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..countries import list_countries
from ..deps import get_db, require_capability
from ..schemas import CountriesResponse, CountryOut


logger = logging.getLogger("countries")

router = APIRouter(prefix="/api", tags=["countries"])


@router.get(
    "/countries",
    response_model=CountriesResponse,
    response_model_exclude_none=True,
    dependencies=[
        Depends(require_capability("can_manage_countries", "can_create_checkpoints", "can_access_reports"))
    ],
)
def countries_list(db: Session = Depends(get_db)):
    try:
        countries = list_countries(db)
    except SQLAlchemyError:
        logger.exception("countries read failed")
        return {"error": True}
    return {"error": False, "countries": [CountryOut.model_validate(c) for c in countries]}
