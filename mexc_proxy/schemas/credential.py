"""Pydantic schemas for the MEXC connection API."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class ConnectRequest(CamelModel):
    api_key: str = Field(max_length=256)  # Raw MEXC API key, encrypted before storage
    api_secret: str = Field(max_length=256)  # Raw MEXC API secret, encrypted before storage
    label: str | None = Field(default=None, max_length=120)

    @field_validator("api_key", "api_secret")
    @classmethod
    def _strip_credential(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("label")
    @classmethod
    def _trim_optional_label(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class OkResponse(CamelModel):
    ok: bool = True


class StatusResponse(CamelModel):
    connected: bool
    updated_at: datetime | None = None
    # credential material is NEVER exposed here


class KeysResponse(CamelModel):
    api_key: str
    api_secret: str
