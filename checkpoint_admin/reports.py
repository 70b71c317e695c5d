from __future__ import annotations

"""
EMBED_SUMMARY: Report aggregation joining scan events to locations, tolerant of legacy checkpoint keys; CSV row shaping.
EMBED_TAGS: reports, join, checkpoints, csv, legacy keys
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from .keys import parse_checkpoint_key
from .models import Checkpoint, Location


LOOKUP_CHUNK_SIZE = 500

CSV_HEADER = [
    "Country",
    "Locale",
    "Location",
    "Phone",
    "Email",
    "Latitude",
    "Longitude",
    "Time of scan",
    "Checkpoint",
]


@dataclass(frozen=True)
class JoinedRecord:
    checkpoint_key: str
    timestamp: datetime
    location: Location


def _locations_by_key(db: Session, keys: Iterable[str]) -> Dict[str, Location]:
    unique_keys = list(dict.fromkeys(keys))
    found: Dict[str, Location] = {}
    for i in range(0, len(unique_keys), LOOKUP_CHUNK_SIZE):
        chunk = unique_keys[i : i + LOOKUP_CHUNK_SIZE]
        rows = db.execute(select(Location).where(Location.checkpoint_key.in_(chunk))).scalars().all()
        for loc in rows:
            found[loc.checkpoint_key] = loc
    return found


def build_report(db: Session) -> List[JoinedRecord]:
    """Join every scan event to its location by exact key.

    Scans whose location no longer resolves are dropped. Survivors keep arrival order.
    Store errors propagate and abort the report.
    """
    scans = db.execute(select(Checkpoint).order_by(Checkpoint.id)).scalars().all()
    locations = _locations_by_key(db, (s.checkpoint_key for s in scans))
    report: List[JoinedRecord] = []
    for scan in scans:
        location = locations.get(scan.checkpoint_key)
        if location is None:
            continue
        report.append(JoinedRecord(checkpoint_key=scan.checkpoint_key, timestamp=scan.timestamp, location=location))
    return report


def report_country(record: JoinedRecord) -> str:
    # Prefixed keys carry the authoritative country; legacy keys fall back to the location
    parsed = parse_checkpoint_key(record.checkpoint_key)
    if not parsed.is_legacy:
        return parsed.country_code or ""
    return record.location.country or ""


def _fmt(value) -> str:
    return "" if value is None else str(value)


def report_csv_rows(records: Iterable[JoinedRecord]) -> Iterable[dict]:
    for record in records:
        loc = record.location
        yield {
            "Country": report_country(record),
            "Locale": _fmt(loc.locale),
            "Location": _fmt(loc.name),
            "Phone": _fmt(loc.phone),
            "Email": _fmt(loc.email),
            "Latitude": _fmt(loc.latitude),
            "Longitude": _fmt(loc.longitude),
            "Time of scan": record.timestamp.isoformat(),
            "Checkpoint": record.checkpoint_key,
        }
