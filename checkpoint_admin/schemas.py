from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ErrorFlag(BaseModel):
    error: bool = False


# Locations
class LocationCreate(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    country: str = Field(min_length=1, max_length=16, pattern=r"^[^:]+$")
    locale: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class LocationCreated(ErrorFlag):
    checkpoint_key: Optional[str] = None


class LocationOut(BaseModel):
    checkpoint_key: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    country: Optional[str] = None
    locale: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    model_config = dict(from_attributes=True)


# Scans
class ScanIn(BaseModel):
    key: str = Field(min_length=1)
    # Devices send epoch milliseconds; pydantic also accepts seconds and ISO strings
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def _to_naive_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class ScanBatch(BaseModel):
    checkpoints: List[ScanIn]


# Report
class JoinedRecordOut(BaseModel):
    key: str
    timestamp: datetime
    location: LocationOut


class ReportResponse(ErrorFlag):
    checkpoints: Optional[List[JoinedRecordOut]] = None


# Countries
class LocaleOut(BaseModel):
    name: str
    code: str

    model_config = dict(from_attributes=True)


class CountryOut(BaseModel):
    name: str
    code: str
    locales: List[LocaleOut] = []

    model_config = dict(from_attributes=True)


class CountriesResponse(ErrorFlag):
    countries: Optional[List[CountryOut]] = None


# Principal
class CapabilityFlags(BaseModel):
    can_upload_checkpoints: bool = False
    can_create_checkpoints: bool = False
    can_manage_users: bool = False
    can_access_reports: bool = False
    can_manage_countries: bool = False


class StatusUser(CapabilityFlags):
    username: str


class StatusResponse(BaseModel):
    is_logged_in: bool
    user: StatusUser


# Password reset
class ResetPasswordRequest(BaseModel):
    username: str


class ResetPassword(BaseModel):
    token: str
    new_password: str = Field(min_length=1)
