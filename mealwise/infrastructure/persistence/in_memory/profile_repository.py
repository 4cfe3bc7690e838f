"""In-memory implementation of IProfileRepository for testing."""

from copy import deepcopy
from typing import Dict, Optional

from mealwise.domain.profile.models import UserProfile


class InMemoryProfileRepository:
    """
    In-memory implementation of profile repository.

    One profile per user; saving upserts. Data is lost when the
    application stops.
    """

    def __init__(self) -> None:
        self._profiles: Dict[str, UserProfile] = {}

    async def get(self, user_id: str) -> Optional[UserProfile]:
        """
        Find profile by user ID.

        Returns:
            Deep copy of profile if found, None otherwise
        """
        profile = self._profiles.get(user_id)
        return deepcopy(profile) if profile else None

    async def save(self, profile: UserProfile) -> None:
        # Deep copy to prevent external mutations
        self._profiles[profile.user_id] = deepcopy(profile)
