"""
Ports (Interfaces) for meal analysis and history dependencies.

Defines abstract interfaces for the external services the application
services depend on: the AI vision estimator, the product database search
and persistence. Adapters live in ``mealwise.infrastructure``.

Design Pattern: Ports & Adapters (Hexagonal Architecture)
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, runtime_checkable

from mealwise.domain.activity.models import WorkoutSession
from mealwise.domain.analytics.nudges import Nudge
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.meal.product.models import ExternalProductRecord
from mealwise.domain.profile.models import UserProfile


@runtime_checkable
class IVisionEstimator(Protocol):
    """
    Port for the AI vision estimation service.

    Returns the raw, untrusted estimate payload; callers normalize it.
    This is an interface - implementations may use different AI vendors.
    """

    async def estimate(
        self,
        image: str,
        secondary_image: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> Any:
        """
        Estimate nutrition for a meal photo.

        Args:
            image: Primary image (data URL or https URL)
            secondary_image: Packaging or label photo
            hint: User clarification text

        Returns:
            Raw payload in the estimate wire shape (possibly malformed)

        Raises:
            EstimationError: If the provider fails or is not configured
            TimeoutError: If the provider does not answer in time
        """
        ...


@runtime_checkable
class IProductSearch(Protocol):
    """Port for the packaged-product database search."""

    async def search(self, query: str) -> List[ExternalProductRecord]:
        """
        Search products by free text ("brand product").

        Returns:
            Candidates in the order the database ranked them

        Raises:
            ExternalServiceError: If the search fails
        """
        ...


@runtime_checkable
class IMealLogRepository(Protocol):
    """Port for meal log persistence."""

    async def save(self, entry: MealLogEntry) -> None:
        """Insert or fully replace an entry."""
        ...

    async def get_by_id(self, meal_id: str, user_id: str) -> Optional[MealLogEntry]:
        """Entry owned by the user, or None."""
        ...

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[MealLogEntry]:
        """User's entries, newest first."""
        ...

    async def delete(self, meal_id: str, user_id: str) -> bool:
        """Delete an entry; False when it did not exist."""
        ...


@runtime_checkable
class IWorkoutRepository(Protocol):
    """Port for workout session persistence."""

    async def save(self, session: WorkoutSession) -> None:
        ...

    async def get_by_id(self, workout_id: str, user_id: str) -> Optional[WorkoutSession]:
        ...

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[WorkoutSession]:
        """User's sessions, newest start first."""
        ...

    async def list_active(self, user_id: str) -> List[WorkoutSession]:
        """Sessions without an end time."""
        ...

    async def delete(self, workout_id: str, user_id: str) -> bool:
        ...


@runtime_checkable
class IProfileRepository(Protocol):
    """Port for user profile persistence."""

    async def get(self, user_id: str) -> Optional[UserProfile]:
        ...

    async def save(self, profile: UserProfile) -> None:
        """Upsert by user id."""
        ...


@runtime_checkable
class INudgeRepository(Protocol):
    """Port for nudge history persistence."""

    async def save(self, nudge: Nudge) -> None:
        ...

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Nudge]:
        """User's stored nudges, newest first."""
        ...


@runtime_checkable
class INotificationSink(Protocol):
    """Port for fire-and-forget message delivery (e.g. a feedback webhook)."""

    async def send(self, message: str) -> None:
        ...
