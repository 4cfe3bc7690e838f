"""
Workout session models.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mealwise.domain.shared.value_objects import WorkoutId


class Intensity(str, Enum):
    """Self-reported workout intensity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def score(self) -> int:
        """Load score used by fueling adjustments (high 2, medium 1, low 0)."""
        return {"low": 0, "medium": 1, "high": 2}[self.value]


def session_minutes(start_ts: datetime, end_ts: datetime) -> int:
    """
    Whole minutes between two timestamps.

    Partial minutes round up; negative spans count as 0.

    Example:
        >>> from datetime import timedelta
        >>> t = datetime(2026, 1, 1, tzinfo=timezone.utc)
        >>> session_minutes(t, t + timedelta(seconds=61))
        2
        >>> session_minutes(t, t + timedelta(seconds=45))
        1
    """
    minutes = (end_ts - start_ts).total_seconds() / 60
    return max(0, math.ceil(minutes))


class WorkoutSession(BaseModel):
    """
    One workout, open while ``end_ts`` is unset.

    Example:
        >>> session = WorkoutSession(
        ...     user_id="user_1",
        ...     start_ts=datetime(2026, 1, 1, 7, tzinfo=timezone.utc),
        ... )
        >>> assert session.is_active
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: WorkoutId.generate().value)
    user_id: str = Field(..., min_length=1)
    start_ts: datetime
    end_ts: Optional[datetime] = None
    duration_min: Optional[int] = Field(None, ge=0)
    workout_types: Optional[List[str]] = None
    intensity: Optional[Intensity] = None

    @field_validator("start_ts", "end_ts")
    @classmethod
    def ensure_aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are taken as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("workout_types")
    @classmethod
    def empty_types_as_none(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return v or None

    @property
    def is_active(self) -> bool:
        return self.end_ts is None

    @property
    def reference_ts(self) -> datetime:
        """End time for finished sessions, start time for open ones."""
        return self.end_ts or self.start_ts

    def close(
        self,
        end_ts: datetime,
        workout_types: Optional[List[str]] = None,
        intensity: Optional[Intensity] = None,
    ) -> WorkoutSession:
        """Closed copy with duration computed from start to end."""
        if end_ts.tzinfo is None:
            end_ts = end_ts.replace(tzinfo=timezone.utc)
        return self.model_copy(
            update={
                "end_ts": end_ts,
                "duration_min": session_minutes(self.start_ts, end_ts),
                "workout_types": workout_types or None,
                "intensity": intensity,
            }
        )
