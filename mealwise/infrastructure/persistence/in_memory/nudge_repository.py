"""In-memory nudge history repository."""

import uuid
from copy import deepcopy
from typing import Dict, List

from mealwise.domain.analytics.nudges import Nudge


class InMemoryNudgeRepository:
    """
    In-memory implementation of INudgeRepository.

    Nudges saved without an id get one assigned.
    """

    def __init__(self) -> None:
        self._storage: Dict[str, Nudge] = {}

    async def save(self, nudge: Nudge) -> None:
        if nudge.id is None:
            nudge = nudge.model_copy(update={"id": f"nudge_{uuid.uuid4().hex[:12]}"})
        self._storage[nudge.id] = deepcopy(nudge)

    async def list_by_user(self, user_id: str, limit: int = 50) -> List[Nudge]:
        """User's stored nudges, newest first."""
        nudges = [n for n in self._storage.values() if n.user_id == user_id]
        nudges.sort(key=lambda n: n.created_at, reverse=True)
        return [deepcopy(n) for n in nudges[: max(limit, 0)]]
