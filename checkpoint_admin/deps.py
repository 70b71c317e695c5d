from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends, Header, HTTPException, status, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import get_settings
from .database import get_db_session
from .mailer import EmailProvider, get_email_provider
from .models import User
from .rate_limit import rate_limit_check
from .security import CAPABILITIES, AuthContext, hash_api_token


def get_db() -> Session:
    yield from get_db_session()


def get_mailer() -> EmailProvider:
    return get_email_provider()


def _context_for_user(user: User) -> AuthContext:
    caps = frozenset(cap for cap in CAPABILITIES if getattr(user, cap))
    return AuthContext(username=user.username, capabilities=caps)


def get_auth_context(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> AuthContext:
    settings = get_settings()
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if token == settings.api_token:
        ctx = AuthContext(username="bootstrap", capabilities=frozenset(CAPABILITIES))
    else:
        user = db.execute(select(User).where(User.api_token_hash == hash_api_token(token))).scalar_one_or_none()
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        ctx = _context_for_user(user)
    rate_limit_check(request, ctx.username)
    return ctx


def require_capability(*capabilities: str) -> Callable[..., AuthContext]:
    """Dependency factory: the principal must hold at least one of the given capabilities."""

    def _check(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        if not any(ctx.can(cap) for cap in capabilities):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return ctx

    return _check
