"""In-memory meal log repository.

Provides an in-memory implementation of the IMealLogRepository port for
development and tests. Uses a dictionary keyed by entry id.
"""

from copy import deepcopy
from typing import Dict, List, Optional

from mealwise.domain.meal.persistence.models import MealLogEntry


class InMemoryMealLogRepository:
    """
    In-memory implementation of IMealLogRepository.

    Thread safety: NOT thread-safe (single event loop only)
    Persistence: Data lost on process restart

    Example:
        >>> repository = InMemoryMealLogRepository()
        >>> await repository.save(entry)
        >>> retrieved = await repository.get_by_id(entry.id, entry.user_id)
    """

    def __init__(self) -> None:
        self._storage: Dict[str, MealLogEntry] = {}

    async def save(self, entry: MealLogEntry) -> None:
        """Insert or fully replace an entry (stores a deep copy)."""
        self._storage[entry.id] = deepcopy(entry)

    async def get_by_id(self, meal_id: str, user_id: str) -> Optional[MealLogEntry]:
        """
        Retrieve an entry owned by the user.

        Returns:
            Deep copy of the entry, or None if missing or owned by someone else
        """
        entry = self._storage.get(meal_id)
        if entry is None or entry.user_id != user_id:
            return None
        return deepcopy(entry)

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[MealLogEntry]:
        """User's entries ordered by timestamp descending."""
        entries = [entry for entry in self._storage.values() if entry.user_id == user_id]
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return [deepcopy(entry) for entry in entries[: max(limit, 0)]]

    async def delete(self, meal_id: str, user_id: str) -> bool:
        """
        Delete an entry.

        Returns:
            True if deleted, False if not found or unauthorized
        """
        entry = self._storage.get(meal_id)
        if entry is None or entry.user_id != user_id:
            return False
        del self._storage[meal_id]
        return True

    def clear(self) -> None:
        """Remove everything (test helper)."""
        self._storage.clear()

    def count(self) -> int:
        return len(self._storage)
