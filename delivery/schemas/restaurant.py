from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class RestaurantCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    contact_phone: str = Field(min_length=1, max_length=20)
    slug: str = Field(min_length=1, max_length=255)
    domain: Optional[str] = Field(default=None, min_length=1, max_length=255)
    active: Optional[bool] = None


class RestaurantPatch(BaseModel):
    """Body of a partial update; only the fields sent are changed."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    contact_phone: Optional[str] = Field(default=None, min_length=1, max_length=20)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)
    domain: Optional[str] = Field(default=None, min_length=1, max_length=255)
    active: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_for_required_columns(self):
        for field in ("name", "contact_phone", "slug", "active"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} may not be null")
        return self


class RestaurantUpdate(RestaurantPatch):
    id: int
    database_name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class RestaurantRead(BaseModel):
    id: int
    name: str
    contact_phone: str
    slug: str
    domain: Optional[str] = None
    database_name: str
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
