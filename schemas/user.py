from __future__ import annotations

import time
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserBase(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[EmailStr] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class UserCreateRequest(UserBase):
    pass


class UserCreate(UserBase):
    # places starts empty; only place creation and deletion ever touch it
    id: str = Field(serialization_alias="_id")
    places: List[str] = Field(default_factory=list)
    date_created: int = Field(default_factory=lambda: int(time.time()))

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class UserOut(UserBase):
    id: str = Field(
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="id",
    )
    places: List[str] = Field(default_factory=list)
    date_created: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("date_created", "dateCreated"),
        serialization_alias="dateCreated",
    )

    model_config = ConfigDict(populate_by_name=True)
