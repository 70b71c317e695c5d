from __future__ import annotations

"""
EMBED_SUMMARY: Public password reset endpoints: request a reset link by email, redeem a token for a new password.
EMBED_TAGS: users, passwords, reset, email, api
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..deps import get_db, get_mailer
from ..mailer import EmailProvider
from ..reset_tokens import redeem_reset_token, request_password_reset
from ..schemas import ErrorFlag, ResetPassword, ResetPasswordRequest


logger = logging.getLogger("users")

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post("/reset-password-request", response_model=ErrorFlag)
def reset_password_request(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    mailer: EmailProvider = Depends(get_mailer),
):
    try:
        ok = request_password_reset(db, payload.username, mailer)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("reset request failed")
        return {"error": True}
    return {"error": not ok}


@router.post("/reset-password", response_model=ErrorFlag)
def reset_password(payload: ResetPassword, db: Session = Depends(get_db)):
    try:
        ok = redeem_reset_token(db, payload.token, payload.new_password)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("reset redeem failed")
        return {"error": True}
    # Unknown and expired tokens look the same to the caller
    return {"error": not ok}
