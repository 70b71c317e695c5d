from __future__ import annotations

import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkpoint_admin.main import app
from checkpoint_admin.database import Base, engine, SessionLocal
from checkpoint_admin.models import Checkpoint, Location
from checkpoint_admin.reports import build_report, report_country
from checkpoint_admin.routers import checkpoints as checkpoints_router


API_TOKEN = "dev-token"
T0 = datetime(2024, 3, 1, 12, 0, 0)


def _auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {API_TOKEN}"}


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        db.execute(delete(Checkpoint))
        db.execute(delete(Location))
        db.commit()
        db.add(Location(checkpoint_key="US:abc123", country="CA", locale="ON", name="Prefixed", phone="1", email="a@x.io", latitude=43.6, longitude=-79.3))
        db.add(Location(checkpoint_key="abc123", country="CA", locale="QC", name="Legacy"))
        db.add_all(
            [
                Checkpoint(checkpoint_key="US:abc123", timestamp=T0),
                Checkpoint(checkpoint_key="ZZ:orphan", timestamp=T0 + timedelta(minutes=1)),
                Checkpoint(checkpoint_key="abc123", timestamp=T0 + timedelta(minutes=2)),
                Checkpoint(checkpoint_key="US:abc123", timestamp=T0 + timedelta(minutes=3)),
            ]
        )
        db.commit()
        yield db
    finally:
        db.close()


def test_orphans_dropped_and_order_kept(db_session) -> None:
    report = build_report(db_session)
    assert [r.checkpoint_key for r in report] == ["US:abc123", "abc123", "US:abc123"]
    assert [r.timestamp for r in report] == [T0, T0 + timedelta(minutes=2), T0 + timedelta(minutes=3)]
    assert report[0].location.name == "Prefixed"
    assert report[1].location.name == "Legacy"


def test_report_is_idempotent(db_session) -> None:
    first = [(r.checkpoint_key, r.timestamp, r.location.id) for r in build_report(db_session)]
    second = [(r.checkpoint_key, r.timestamp, r.location.id) for r in build_report(db_session)]
    assert first == second


def test_country_prefix_wins_over_location(db_session) -> None:
    by_key = {r.checkpoint_key: r for r in build_report(db_session)}
    assert report_country(by_key["US:abc123"]) == "US"
    assert report_country(by_key["abc123"]) == "CA"


def test_deleted_location_drops_its_scans(db_session) -> None:
    db_session.execute(delete(Location).where(Location.checkpoint_key == "abc123"))
    db_session.commit()
    report = build_report(db_session)
    assert [r.checkpoint_key for r in report] == ["US:abc123", "US:abc123"]


def test_empty_stores_give_empty_report(db_session) -> None:
    db_session.execute(delete(Checkpoint))
    db_session.commit()
    assert build_report(db_session) == []


def test_report_endpoint(db_session) -> None:
    client = TestClient(app)
    r = client.get("/api/checkpoints/locations", headers=_auth_headers())
    assert r.status_code == 200
    data = r.json()
    assert data["error"] is False
    items = data["checkpoints"]
    assert [i["key"] for i in items] == ["US:abc123", "abc123", "US:abc123"]
    assert items[0]["location"]["name"] == "Prefixed"
    assert items[0]["location"]["country"] == "CA"


def test_report_store_failure_is_error_flag(db_session, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(db):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(checkpoints_router, "build_report", boom)
    client = TestClient(app)
    r = client.get("/api/checkpoints/locations", headers=_auth_headers())
    assert r.status_code == 200
    assert r.json() == {"error": True}
