from __future__ import annotations

import os

from sqlalchemy import select

from .database import Base, engine, session_scope
from .models import Country, Locale, User
from .security import CAPABILITIES, hash_password, make_api_token


DEFAULT_COUNTRIES = [
    ("Canada", "CA", [("Ontario", "ON"), ("Quebec", "QC"), ("British Columbia", "BC")]),
    ("United States", "US", [("California", "CA"), ("New York", "NY"), ("Texas", "TX")]),
]


def upsert_defaults() -> None:
    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        for name, code, locales in DEFAULT_COUNTRIES:
            country = db.execute(select(Country).where(Country.code == code)).scalar_one_or_none()
            if country is None:
                country = Country(name=name, code=code)
                db.add(country)
            existing = {loc.code for loc in country.locales}
            for loc_name, loc_code in locales:
                if loc_code not in existing:
                    country.locales.append(Locale(name=loc_name, code=loc_code))


def create_admin(username: str, password: str) -> str:
    """Create (or refresh) an admin with every capability; returns its new API token."""
    Base.metadata.create_all(bind=engine)
    raw, token_hash = make_api_token()
    with session_scope() as db:
        user = db.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if user is None:
            user = User(username=username)
            db.add(user)
        user.password_hash = hash_password(password)
        user.api_token_hash = token_hash
        for cap in CAPABILITIES:
            setattr(user, cap, True)
    return raw


def main() -> None:
    upsert_defaults()
    username = os.getenv("SEED_ADMIN_USERNAME")
    if username:
        token = create_admin(username, os.getenv("SEED_ADMIN_PASSWORD", "change-me"))
        print(f"Admin {username} API token: {token}")
    print("Seed complete.")


if __name__ == "__main__":
    main()
