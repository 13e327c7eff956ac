"""Pydantic models for notification preferences."""

from __future__ import annotations

from pydantic import BaseModel, Field


class PreferencesUpdate(BaseModel):
    """Keys to change; keys left out keep their stored value."""

    preferences: dict[str, bool] = Field(..., description="Preference key to enabled flag")


class PreferencesRead(BaseModel):
    user_id: str
    preferences: dict[str, bool]


__all__ = ["PreferencesRead", "PreferencesUpdate"]
