import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, Field


def _require_future(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value <= datetime.now(timezone.utc):
        raise ValueError("Event datetime must be in the future")
    return value


FutureDatetime = Annotated[datetime, AfterValidator(_require_future)]


class EventCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    starts_at: FutureDatetime = Field(alias="datetime")
    description: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    model_config = {"populate_by_name": True}


class EventUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=3, max_length=100)
    starts_at: FutureDatetime | None = Field(default=None, alias="datetime")
    description: str | None = Field(default=None, max_length=1000)
    location: str | None = Field(default=None, max_length=200)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    status: Literal["DRAFT", "UPCOMING", "ONGOING", "COMPLETED"] | None = None

    model_config = {"populate_by_name": True}
