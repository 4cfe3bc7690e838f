"""In-memory persistence implementations."""

from mealwise.infrastructure.persistence.in_memory.meal_repository import (
    InMemoryMealLogRepository,
)
from mealwise.infrastructure.persistence.in_memory.nudge_repository import (
    InMemoryNudgeRepository,
)
from mealwise.infrastructure.persistence.in_memory.profile_repository import (
    InMemoryProfileRepository,
)
from mealwise.infrastructure.persistence.in_memory.workout_repository import (
    InMemoryWorkoutRepository,
)

__all__ = [
    "InMemoryMealLogRepository",
    "InMemoryNudgeRepository",
    "InMemoryProfileRepository",
    "InMemoryWorkoutRepository",
]
