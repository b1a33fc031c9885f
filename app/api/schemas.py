"""
Pydantic schemas for API request/response contracts.
"""
from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from app.models.configuration_setting import KEY_MAX_LENGTH


class SettingIn(BaseModel):
    key: str = Field(min_length=1, max_length=KEY_MAX_LENGTH)
    # Left raw so every value goes through the fixed-point validator.
    value: Union[str, int, float, Decimal]

    @field_validator("value", mode="before")
    @classmethod
    def reject_booleans(cls, value):
        if isinstance(value, bool):
            raise ValueError("value must be a number or numeric text")
        return value


class SettingOut(BaseModel):
    key: str
    value: str


class SubmitRequest(BaseModel):
    settings: List[SettingIn] = Field(default_factory=list)


class ConnectRequest(BaseModel):
    database_url: str = Field(min_length=1)

    @field_validator("database_url")
    @classmethod
    def strip_url(cls, value: str) -> str:
        stripped = str(value or "").strip()
        if not stripped:
            raise ValueError("database_url must not be blank")
        return stripped


class SettingsResponse(BaseModel):
    settings: List[SettingOut] = Field(default_factory=list)
    count: int = 0
    state: str
    timestamp: str


class SubmitResponse(BaseModel):
    outcome: str
    message: str
    key: Optional[str] = None
    settings: List[SettingOut] = Field(default_factory=list)
    corrected: List[SettingOut] = Field(default_factory=list)
    timestamp: str
