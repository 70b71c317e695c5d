from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Country, Locale


def list_countries(db: Session) -> list[Country]:
    """Countries ordered by name; each country's locales are ordered by name on the relationship."""
    return list(db.execute(select(Country).order_by(Country.name)).scalars().all())


def get_country_by_code(countries: Sequence[Country], code: Optional[str]) -> Optional[Country]:
    if not code:
        return None
    for country in countries:
        if country.code == code:
            return country
    return None


def get_locale_by_code(countries: Sequence[Country], country_code: Optional[str], locale_code: Optional[str]) -> Optional[Locale]:
    country = get_country_by_code(countries, country_code)
    if country is None or not locale_code:
        return None
    for locale in country.locales:
        if locale.code == locale_code:
            return locale
    return None
