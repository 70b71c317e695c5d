from __future__ import annotations

"""
EMBED_SUMMARY: Location registration with checkpoint key generation, and bulk scan recording.
EMBED_TAGS: checkpoints, locations, scans, registry
"""

import logging
from datetime import datetime
from typing import Iterable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import get_settings
from .keys import generate_checkpoint_key
from .models import Checkpoint, Location


logger = logging.getLogger("checkpoints")


class KeyGenerationError(RuntimeError):
    pass


def _key_exists(db: Session, key: str) -> bool:
    return db.execute(select(Location.id).where(Location.checkpoint_key == key)).first() is not None


def create_location(
    db: Session,
    *,
    country: str,
    locale: Optional[str] = None,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> Location:
    """Persist a new location under a freshly generated checkpoint key.

    With the uniqueness check enabled, a key already present (found by lookup or
    by the unique index on insert) is regenerated up to the configured attempts.
    Store errors other than a key clash propagate to the caller.
    """
    settings = get_settings()
    attempts = settings.checkpoint_key_max_attempts if settings.checkpoint_key_unique_check else 1
    for attempt in range(1, attempts + 1):
        key = generate_checkpoint_key(country)
        if settings.checkpoint_key_unique_check and _key_exists(db, key):
            logger.warning("checkpoint key collision key=%s attempt=%s", key, attempt)
            continue
        location = Location(
            checkpoint_key=key,
            latitude=latitude,
            longitude=longitude,
            country=country,
            locale=locale,
            name=name,
            phone=phone,
            email=email,
        )
        db.add(location)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            if not settings.checkpoint_key_unique_check:
                raise
            logger.warning("checkpoint key collision on insert key=%s attempt=%s", key, attempt)
            continue
        db.refresh(location)
        logger.info("location created key=%s country=%s", key, country)
        return location
    raise KeyGenerationError(f"Could not generate a unique checkpoint key after {attempts} attempts")


def record_scans(db: Session, scans: Iterable[Tuple[str, datetime]]) -> int:
    """Append scan events in one transaction; all or nothing."""
    rows = [Checkpoint(checkpoint_key=key, timestamp=ts) for key, ts in scans]
    db.add_all(rows)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return len(rows)
