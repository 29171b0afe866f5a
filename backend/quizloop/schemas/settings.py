"""Pydantic models for application configuration settings."""

from pydantic import BaseModel, Field


class SettingsRead(BaseModel):
    site_name: str
    default_passing_score_percent: int
    default_time_limit_minutes: int


class SettingsUpdate(BaseModel):
    site_name: str | None = None
    default_passing_score_percent: int | None = Field(default=None, ge=0, le=100)
    default_time_limit_minutes: int | None = Field(default=None, ge=0)
