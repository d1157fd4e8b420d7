"""Progression state model for gamification"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


XP_PER_LEVEL = 100
MIN_LIFESCORE = 0
MAX_LIFESCORE = 1000
MAX_PROGRESS = 100


def level_for_xp(xp: int) -> int:
    """Fixed-width levels: 100 XP per level, starting at level 1"""
    return max(xp, 0) // XP_PER_LEVEL + 1


class ProgressionState(BaseModel):
    """
    Canonical per-user gamification record.

    `level` is never stored on its own: it is computed from `xp` on every
    access (and serialized alongside it), so the two cannot drift apart.
    `version` belongs to the storage layer; the progression operations copy
    it through untouched.
    """
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    xp: int = Field(default=0, ge=0)
    lifescore: int = Field(default=0, ge=MIN_LIFESCORE, le=MAX_LIFESCORE)
    coins: int = Field(default=0, ge=0)
    streak_days: int = Field(default=0, ge=0)
    version: int = Field(default=0, ge=0)
    updated_at: Optional[datetime] = None

    @computed_field
    @property
    def level(self) -> int:
        return level_for_xp(self.xp)

    def touched(self, **changes) -> "ProgressionState":
        """Copy with field changes and a fresh updated_at"""
        changes.setdefault("updated_at", datetime.now(timezone.utc))
        return self.model_copy(update=changes)
