"""In-memory workout session repository."""

from copy import deepcopy
from typing import Dict, List, Optional

from mealwise.domain.activity.models import WorkoutSession


class InMemoryWorkoutRepository:
    """
    In-memory implementation of IWorkoutRepository.

    Sessions are keyed by id; saving a closed copy of an open session
    replaces it.
    """

    def __init__(self) -> None:
        self._storage: Dict[str, WorkoutSession] = {}

    async def save(self, session: WorkoutSession) -> None:
        self._storage[session.id] = deepcopy(session)

    async def get_by_id(self, workout_id: str, user_id: str) -> Optional[WorkoutSession]:
        session = self._storage.get(workout_id)
        if session is None or session.user_id != user_id:
            return None
        return deepcopy(session)

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[WorkoutSession]:
        """User's sessions, newest start first."""
        sessions = [s for s in self._storage.values() if s.user_id == user_id]
        sessions.sort(key=lambda s: s.start_ts, reverse=True)
        return [deepcopy(s) for s in sessions[: max(limit, 0)]]

    async def list_active(self, user_id: str) -> List[WorkoutSession]:
        return [
            deepcopy(s)
            for s in self._storage.values()
            if s.user_id == user_id and s.is_active
        ]

    async def delete(self, workout_id: str, user_id: str) -> bool:
        session = self._storage.get(workout_id)
        if session is None or session.user_id != user_id:
            return False
        del self._storage[workout_id]
        return True
