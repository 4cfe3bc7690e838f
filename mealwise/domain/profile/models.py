"""
User profile models.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

POUNDS_TO_KG = 0.453592


class GoalDirection(str, Enum):
    """Direction the user wants their body weight to move."""

    GAIN = "gain"
    MAINTAIN = "maintain"
    BALANCE = "balance"
    LOSE = "lose"

    @property
    def protein_factor(self) -> float:
        """Grams of protein per kg body weight used for targets."""
        if self is GoalDirection.GAIN:
            return 2.2
        if self is GoalDirection.LOSE:
            return 1.6
        return 1.8

    @property
    def calorie_nudge(self) -> float:
        """Relative calorie target adjustment."""
        if self is GoalDirection.GAIN:
            return 0.05
        if self is GoalDirection.LOSE:
            return -0.05
        return 0.0


class Units(str, Enum):
    METRIC = "metric"
    IMPERIAL = "imperial"


class Sex(str, Enum):
    FEMALE = "female"
    MALE = "male"
    OTHER = "other"
    PREFER_NOT = "prefer_not"


class UserProfile(BaseModel):
    """
    User profile used to personalize targets and nudges.

    ``weight`` is in the user's units: kilograms for metric, pounds for
    imperial. Use ``weight_kg`` for calculations.

    Example:
        >>> profile = UserProfile(user_id="user_1", weight=180, units="imperial")
        >>> round(profile.weight_kg, 1)
        81.6
        >>> UserProfile(user_id="u", goal_direction="recomposition").goal_direction
        <GoalDirection.BALANCE: 'balance'>
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    weight: Optional[float] = Field(None, gt=0)
    height: Optional[float] = Field(None, gt=0)
    age: Optional[int] = Field(None, gt=0)
    sex: Sex = Sex.PREFER_NOT
    goal_direction: GoalDirection = GoalDirection.MAINTAIN
    body_priority: Optional[str] = None
    freeform_focus: Optional[str] = None
    units: Units = Units.METRIC

    @field_validator("goal_direction", mode="before")
    @classmethod
    def legacy_goal(cls, v: Any) -> Any:
        """Map the retired "recomposition" goal to balance."""
        if v == "recomposition":
            return GoalDirection.BALANCE
        return v or GoalDirection.MAINTAIN

    @property
    def weight_kg(self) -> Optional[float]:
        """Body weight in kilograms, if known."""
        if not self.weight:
            return None
        if self.units is Units.IMPERIAL:
            return self.weight * POUNDS_TO_KG
        return self.weight

    @property
    def protein_target_g(self) -> Optional[float]:
        """Full protein goal in grams (weight_kg x goal factor)."""
        weight = self.weight_kg
        if weight is None:
            return None
        return weight * self.goal_direction.protein_factor

    @property
    def focus_text(self) -> str:
        """Lower-cased free-form focus, falling back to body priority."""
        return (self.freeform_focus or self.body_priority or "").lower()
