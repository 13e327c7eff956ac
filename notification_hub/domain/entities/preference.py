"""Domain entity holding a user's notification preferences."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class PreferenceRecord:
    """Mapping of preference key to enabled flag for one user.

    A key that is absent from ``preferences`` counts as enabled.
    """

    user_id: str
    preferences: dict[str, bool] = field(default_factory=dict)
    updated_at: datetime | None = None

    def is_enabled(self, key: str) -> bool:
        return self.preferences.get(key) is not False


__all__ = ["PreferenceRecord"]
