from __future__ import annotations

import time
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class PlaceBase(BaseModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class PlaceCreateRequest(PlaceBase):
    address: str = Field(min_length=1)
    image: Optional[str] = None

    @field_validator("address", mode="before")
    @classmethod
    def strip_address(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class PlaceUpdateRequest(PlaceBase):
    pass


class PlaceCreate(PlaceBase):
    id: str = Field(serialization_alias="_id")
    address: str
    location: Location
    image: str
    creator: str
    date_created: int = Field(default_factory=lambda: int(time.time()))
    last_updated: int = Field(default_factory=lambda: int(time.time()))

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class PlaceOut(PlaceBase):
    id: str = Field(
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="id",
    )
    address: str
    location: Location
    image: str
    creator: str
    date_created: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("date_created", "dateCreated"),
        serialization_alias="dateCreated",
    )
    last_updated: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("last_updated", "lastUpdated"),
        serialization_alias="lastUpdated",
    )

    model_config = ConfigDict(populate_by_name=True)


class PlaceImageOut(BaseModel):
    image: str
