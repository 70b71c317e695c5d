from __future__ import annotations

"""
EMBED_SUMMARY: Checkpoint key generation (country prefix + truncated sha256) and dual-format key parsing.
EMBED_TAGS: checkpoints, keys, hashing, legacy
"""

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional

from .config import get_settings


KEY_SEPARATOR = ":"


@dataclass(frozen=True)
class ParsedKey:
    fragment: str
    country_code: Optional[str] = None

    @property
    def is_legacy(self) -> bool:
        return self.country_code is None


def generate_checkpoint_key(country_code: str, length: Optional[int] = None) -> str:
    """Return ``"<country_code>:<fragment>"`` where fragment is a truncated hex sha256 of a random seed.

    Uniqueness is probabilistic; callers that need a guarantee check the store.
    """
    k = length or get_settings().checkpoint_key_length
    seed = secrets.token_hex(16)
    fragment = hashlib.sha256(seed.encode("utf-8")).hexdigest()[:k]
    return f"{country_code}{KEY_SEPARATOR}{fragment}"


def parse_checkpoint_key(key: str) -> ParsedKey:
    parts = key.split(KEY_SEPARATOR)
    if len(parts) == 2:
        return ParsedKey(fragment=parts[1], country_code=parts[0])
    # Legacy keys predate the country prefix
    return ParsedKey(fragment=key)
