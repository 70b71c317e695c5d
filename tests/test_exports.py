from __future__ import annotations

import base64
import csv
import io
import re
import sys
import zlib
from datetime import datetime
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from checkpoint_admin.main import app
from checkpoint_admin.database import Base, engine, SessionLocal
from checkpoint_admin.flyer import checkpoint_scan_url, flyer_location_lines, qr_png, render_checkpoint_pdf
from checkpoint_admin.models import Checkpoint, Country, Locale, Location
from checkpoint_admin.reports import CSV_HEADER


API_TOKEN = "dev-token"


def _auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {API_TOKEN}"}


@pytest.fixture()
def client() -> TestClient:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        db.execute(delete(Checkpoint))
        db.execute(delete(Location))
        db.execute(delete(Locale))
        db.execute(delete(Country))
        db.commit()
    finally:
        db.close()
    return TestClient(app)


def _rows(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


def test_csv_header_with_no_rows(client: TestClient) -> None:
    r = client.get("/hotspots.csv", headers=_auth_headers())
    assert r.status_code == 200
    assert r.headers.get("content-type", "").startswith("text/csv")
    assert "hotspots.csv" in r.headers.get("content-disposition", "")
    rows = _rows(r.text)
    assert rows == [CSV_HEADER]


def test_csv_rows(client: TestClient) -> None:
    db = SessionLocal()
    try:
        db.add(Location(checkpoint_key="US:abc123", country="CA", locale="ON", name="Town Hall", phone="555", email="th@x.io", latitude=43.5, longitude=-79.25))
        db.add(Location(checkpoint_key="abc999", country="CA", locale="QC", name="Old Market"))
        db.add(Checkpoint(checkpoint_key="US:abc123", timestamp=datetime(2024, 5, 1, 8, 30)))
        db.add(Checkpoint(checkpoint_key="gone:000", timestamp=datetime(2024, 5, 1, 8, 31)))
        db.add(Checkpoint(checkpoint_key="abc999", timestamp=datetime(2024, 5, 1, 8, 32)))
        db.commit()
    finally:
        db.close()

    r = client.get("/hotspots.csv", headers=_auth_headers())
    assert r.status_code == 200
    rows = _rows(r.text)
    assert rows[0] == CSV_HEADER
    assert rows[1] == ["US", "ON", "Town Hall", "555", "th@x.io", "43.5", "-79.25", "2024-05-01T08:30:00", "US:abc123"]
    assert rows[2] == ["CA", "QC", "Old Market", "", "", "", "", "2024-05-01T08:32:00", "abc999"]
    assert len(rows) == 3


def _countries() -> list[Country]:
    return [Country(name="Canada", code="CA", locales=[Locale(name="Ontario", code="ON")])]


def test_flyer_location_lines() -> None:
    countries = _countries()
    assert flyer_location_lines(None, countries) == []
    assert flyer_location_lines(Location(name="Town Hall", country="CA", locale="ON"), countries) == [
        "Town Hall",
        "Ontario",
        "Canada",
    ]
    # Country resolves, locale does not
    assert flyer_location_lines(Location(name="Town Hall", country="CA", locale="XX"), countries) == [
        "Town Hall",
        "Canada",
    ]
    # Neither resolves; raw codes are never printed
    assert flyer_location_lines(Location(name="Town Hall", country="ZZ", locale="ON"), countries) == ["Town Hall"]


def test_scan_url_and_qr() -> None:
    assert checkpoint_scan_url("US:abc", app_domain="https://scan.example/") == "https://scan.example/?checkpoint=US:abc"
    png = qr_png("https://scan.example/?checkpoint=US:abc")
    assert png.startswith(b"\x89PNG")


def _pdf_streams(pdf: bytes) -> list[bytes]:
    streams = []
    for header, body in re.findall(rb"<<(.*?)>>\s*stream\r?\n(.*?)endstream", pdf, re.S):
        if re.search(rb"/Subtype\s*/Image", header):
            continue
        data = body
        if b"/ASCII85Decode" in header:
            data = base64.a85decode(data.strip(), adobe=True)
        if b"/FlateDecode" in header:
            data = zlib.decompressobj().decompress(data)
        streams.append(data)
    return streams


def _pdf_text(pdf: bytes) -> str:
    shown = []
    for stream in _pdf_streams(pdf):
        shown.extend(m.decode("latin-1") for m in re.findall(rb"\((.*?)\) Tj", stream))
    return " ".join(shown)


def _image_count(pdf: bytes) -> int:
    return len(re.findall(rb"/Subtype\s*/Image", pdf))


def test_render_pdf_without_location() -> None:
    pdf = render_checkpoint_pdf("US:abc123", None, [], alt_title="Main entrance", alt_help="Open your camera app")
    assert pdf.startswith(b"%PDF")
    text = _pdf_text(pdf)
    assert "Stay safe. Keep track." in text
    assert "Main entrance" in text
    assert "smartphone" in text
    assert _image_count(pdf) == 1


def test_render_pdf_with_location_lines() -> None:
    countries = _countries()
    location = Location(checkpoint_key="CA:f00d", name="Town Hall", country="CA", locale="ON")
    text = _pdf_text(render_checkpoint_pdf("CA:f00d", location, countries))
    assert "Stay safe. Keep track." in text
    assert "Town Hall" in text
    assert "Ontario" in text
    assert "Canada" in text

    # Locale unknown in the reference table: country line only
    location = Location(checkpoint_key="CA:f00d", name="Town Hall", country="CA", locale="XX")
    text = _pdf_text(render_checkpoint_pdf("CA:f00d", location, countries))
    assert "Canada" in text
    assert "Ontario" not in text


def test_pdf_endpoint_missing_location(client: TestClient) -> None:
    r = client.get("/generate/US:nothere/checkpoint.pdf", headers=_auth_headers())
    assert r.status_code == 200
    assert r.headers.get("content-type", "").startswith("application/pdf")
    assert r.content.startswith(b"%PDF")
    text = _pdf_text(r.content)
    assert "Stay safe. Keep track." in text
    assert _image_count(r.content) == 1
    assert "Library" not in text
    assert "Canada" not in text


def test_pdf_endpoint_with_location(client: TestClient) -> None:
    db = SessionLocal()
    try:
        db.add(Country(name="Canada", code="CA", locales=[Locale(name="Ontario", code="ON")]))
        db.add(Location(checkpoint_key="CA:f00d", country="CA", locale="ON", name="Library"))
        db.commit()
    finally:
        db.close()
    r = client.get(
        "/generate/CA:f00d/checkpoint.pdf",
        params={"alt_title": "Front desk", "alt_help": "Point your camera at the code"},
        headers=_auth_headers(),
    )
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")
    text = _pdf_text(r.content)
    assert "Stay safe. Keep track." in text
    assert "Front desk" in text
    assert "Library" in text
    assert "Ontario" in text
    assert "Canada" in text
    assert _image_count(r.content) == 1
