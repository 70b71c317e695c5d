from __future__ import annotations

"""
EMBED_SUMMARY: Password reset token lifecycle: issue + email, age check on redeem, single-use atomic consumption.
EMBED_TAGS: reset, tokens, passwords, email, lifecycle
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .config import get_settings
from .mailer import EmailMessage, EmailProvider
from .models import ResetToken, User
from .security import hash_password, make_reset_token


logger = logging.getLogger("reset_tokens")


def is_expired(issued_at: datetime, now: Optional[datetime] = None) -> bool:
    ttl = timedelta(hours=get_settings().reset_token_ttl_hours)
    return (now or datetime.utcnow()) - issued_at > ttl


def issue_reset_token(db: Session, username: str, now: Optional[datetime] = None) -> ResetToken:
    settings = get_settings()
    rt = ResetToken(username=username, token=make_reset_token(settings.reset_token_bytes), issued_at=now or datetime.utcnow())
    db.add(rt)
    db.commit()
    db.refresh(rt)
    return rt


def reset_email(username: str, token: str) -> EmailMessage:
    settings = get_settings()
    link = f"{settings.admin_domain}/admin/reset-password?token={token}"
    return EmailMessage(
        to=username,
        from_email=settings.admin_email_from,
        subject=f"Password reset for {settings.app_name} Admin",
        text=(
            f"We received a request to reset your password for {settings.app_name} Admin. "
            f"You may reset your password using the link below.\n\n"
            f"Reset your password: {link}\n\n"
            f"This link will expire in {settings.reset_token_ttl_hours} hours."
        ),
    )


def request_password_reset(db: Session, username: str, mailer: EmailProvider) -> bool:
    """Issue a token for a known user and email the reset link. Returns False on any failure.

    A failed send leaves the issued token in place.
    """
    user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
    if user is None:
        return False
    rt = issue_reset_token(db, username)
    if not mailer.send(reset_email(username, rt.token)):
        logger.error("reset email delivery failed username=%s", username)
        return False
    return True


def redeem_reset_token(db: Session, token: str, new_password: str, now: Optional[datetime] = None) -> bool:
    """Set a new password if the token exists and is not expired, consuming the token.

    Unknown and expired tokens are rejected identically; expired tokens are left in place.
    The password change and the token delete commit together, and a delete that
    matches nothing (already consumed concurrently) rolls the change back.
    """
    rt = db.execute(select(ResetToken).where(ResetToken.token == token)).scalar_one_or_none()
    if rt is None:
        return False
    if is_expired(rt.issued_at, now):
        logger.info("reset token expired username=%s", rt.username)
        return False
    user = db.execute(select(User).where(User.username == rt.username)).scalar_one_or_none()
    if user is None:
        return False

    user.password_hash = hash_password(new_password)
    db.add(user)
    result = db.execute(delete(ResetToken).where(ResetToken.id == rt.id))
    if result.rowcount != 1:
        db.rollback()
        logger.warning("reset token already consumed username=%s", rt.username)
        return False
    db.commit()
    logger.info("password reset username=%s", rt.username)
    return True
