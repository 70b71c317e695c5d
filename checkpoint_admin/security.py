from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass, field
from typing import FrozenSet

from passlib.context import CryptContext


CAPABILITIES = (
    "can_upload_checkpoints",
    "can_create_checkpoints",
    "can_manage_users",
    "can_access_reports",
    "can_manage_countries",
)

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class AuthContext:
    """Resolved principal passed into each operation instead of ambient request state."""

    username: str
    capabilities: FrozenSet[str] = field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    def as_flags(self) -> dict:
        return {cap: cap in self.capabilities for cap in CAPABILITIES}


def hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return _pwd_context.verify(password, hashed)


def hash_api_token(raw: str) -> str:
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()


def make_api_token() -> tuple[str, str]:
    raw = secrets.token_urlsafe(32)
    return raw, hash_api_token(raw)


def make_reset_token(nbytes: int) -> str:
    return secrets.token_urlsafe(nbytes)
