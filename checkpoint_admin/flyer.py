from __future__ import annotations

"""
EMBED_SUMMARY: Single-checkpoint PDF flyer with a QR code linking to the public scan page.
EMBED_TAGS: pdf, qr, flyer, checkpoints, exports
"""

import io
from typing import List, Optional, Sequence

import qrcode
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from .config import get_settings
from .countries import get_country_by_code, get_locale_by_code
from .models import Country, Location


HEADLINE = "Stay safe. Keep track."
SCAN_HELP = "Scan this code using your smartphone"
FONT = "Helvetica"
PAGE_WIDTH, PAGE_HEIGHT = letter
MARGIN = 55
QR_SIZE = 280
HELP_X = 370


def checkpoint_scan_url(checkpoint_key: str, app_domain: Optional[str] = None) -> str:
    base = app_domain if app_domain is not None else get_settings().app_domain
    return f"{base}?checkpoint={checkpoint_key}"


def qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(border=0, box_size=20)
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image()
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def flyer_location_lines(location: Optional[Location], countries: Sequence[Country]) -> List[str]:
    """Name, then locale display name (country and locale both resolve), then country display name."""
    if location is None:
        return []
    lines = [location.name or ""]
    country = get_country_by_code(countries, location.country)
    if country is not None:
        locale = get_locale_by_code(countries, location.country, location.locale)
        if locale is not None:
            lines.append(locale.name)
        lines.append(country.name)
    return lines


def _text(c: canvas.Canvas, text: str, x: float, top: float, size: int, width: Optional[float] = None) -> None:
    # Positions are measured from the top of the page
    c.setFont(FONT, size)
    lines = simpleSplit(text, FONT, size, width) if width else [text]
    leading = size * 1.2
    for i, line in enumerate(lines):
        c.drawString(x, PAGE_HEIGHT - top - size - i * leading, line)


def render_checkpoint_pdf(
    checkpoint_key: str,
    location: Optional[Location],
    countries: Sequence[Country],
    alt_title: Optional[str] = None,
    alt_help: Optional[str] = None,
) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.setTitle(f"Checkpoint {checkpoint_key}")

    _text(c, HEADLINE, MARGIN, 50, 50, width=PAGE_WIDTH - 2 * MARGIN)
    if alt_title:
        _text(c, alt_title, MARGIN, 120, 30, width=PAGE_WIDTH - 2 * MARGIN)

    qr = ImageReader(io.BytesIO(qr_png(checkpoint_scan_url(checkpoint_key))))
    c.drawImage(qr, MARGIN, PAGE_HEIGHT - 225 - QR_SIZE, width=QR_SIZE, height=QR_SIZE)

    help_width = PAGE_WIDTH - HELP_X - MARGIN
    _text(c, SCAN_HELP, HELP_X, 225, 24, width=help_width)
    if alt_help:
        _text(c, alt_help, HELP_X, 320, 20, width=help_width)

    lines = flyer_location_lines(location, countries)
    if lines:
        _text(c, lines[0], MARGIN, 650, 16)
        for top, line in zip((690, 705), lines[1:]):
            _text(c, line, MARGIN, top, 12)

    c.showPage()
    c.save()
    return buf.getvalue()
