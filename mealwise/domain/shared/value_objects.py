"""
Shared value objects.

Immutable, validated domain primitives.
Following DDD value object pattern.
"""

from __future__ import annotations

import uuid
from pydantic import BaseModel, Field, field_validator, ConfigDict


class UserId(BaseModel):
    """
    User ID value object.

    Wraps string ID with validation and type safety.

    Example:
        >>> user_id = UserId(value="user_123")
        >>> assert str(user_id) == "user_123"
        >>> user_id2 = UserId.from_string("user_456")
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="User identifier")

    @field_validator("value")
    @classmethod
    def not_empty(cls, v: str) -> str:
        """Ensure not empty or whitespace."""
        if not v.strip():
            raise ValueError("UserId cannot be empty or whitespace")
        return v.strip()

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __repr__(self) -> str:
        """Debug representation."""
        return f"UserId('{self.value}')"

    def __hash__(self) -> int:
        """Allow use as dict key."""
        return hash(self.value)

    @classmethod
    def from_string(cls, s: str) -> UserId:
        """Create from string."""
        return cls(value=s)


class MealId(BaseModel):
    """
    Meal log entry ID value object.

    Example:
        >>> meal_id = MealId.generate()
        >>> assert meal_id.value.startswith("meal_")
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Meal identifier")

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __repr__(self) -> str:
        """Debug representation."""
        return f"MealId('{self.value}')"

    def __hash__(self) -> int:
        """Allow use as dict key."""
        return hash(self.value)

    @classmethod
    def generate(cls) -> MealId:
        """Generate new meal ID."""
        return cls(value=f"meal_{uuid.uuid4().hex[:12]}")

    @classmethod
    def from_string(cls, s: str) -> MealId:
        """Create from string."""
        return cls(value=s)


class WorkoutId(BaseModel):
    """
    Workout session ID value object.

    Example:
        >>> workout_id = WorkoutId.generate()
        >>> assert workout_id.value.startswith("workout_")
    """

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, description="Workout identifier")

    def __str__(self) -> str:
        """String representation."""
        return self.value

    def __repr__(self) -> str:
        """Debug representation."""
        return f"WorkoutId('{self.value}')"

    def __hash__(self) -> int:
        """Allow use as dict key."""
        return hash(self.value)

    @classmethod
    def generate(cls) -> WorkoutId:
        """Generate new workout ID."""
        return cls(value=f"workout_{uuid.uuid4().hex[:12]}")

    @classmethod
    def from_string(cls, s: str) -> WorkoutId:
        """Create from string."""
        return cls(value=s)
