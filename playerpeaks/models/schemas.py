from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema accepting both field names and their wire aliases."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class SystemHealth(BaseSchema):
    status: str
    components: Dict[str, str] = Field(default_factory=dict)


class PlayerCount(BaseSchema):
    playing: int
    peak_24h: int = Field(alias="peak24h")
    peak_7d: int = Field(alias="peak7d")
    updated_at: str = Field(alias="updatedAt")


class PlayerCountError(BaseSchema):
    error: str
    playing: int = 0
    peak_24h: int = Field(default=0, alias="peak24h")
    peak_7d: int = Field(default=0, alias="peak7d")


class RateLimitedError(BaseSchema):
    error: str = "Too many requests"
    retry_after: int = Field(alias="retryAfter")
