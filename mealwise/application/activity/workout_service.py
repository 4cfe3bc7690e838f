"""
Workout tracking service.

Start/end workout sessions. At most one session per user is meant to be
open; ending closes every open session.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import structlog

from mealwise.domain.activity.models import Intensity, WorkoutSession
from mealwise.domain.meal.orchestration.ports import IWorkoutRepository
from mealwise.domain.shared.errors import WorkoutNotFoundError
from mealwise.domain.shared.value_objects import UserId

logger = structlog.get_logger(__name__)

# Logged when the user ends a workout that was never started
ASSUMED_SESSION_MINUTES = 45


class WorkoutService:
    """Manages workout sessions."""

    def __init__(self, repository: IWorkoutRepository) -> None:
        self.repository = repository

    async def active(self, user_id: str) -> Optional[WorkoutSession]:
        """Most recently started open session, if any."""
        sessions = await self.repository.list_active(UserId.from_string(user_id).value)
        if not sessions:
            return None
        return max(sessions, key=lambda session: session.start_ts)

    async def start(
        self,
        user_id: str,
        workout_types: Optional[List[str]] = None,
        intensity: Optional[Intensity] = None,
        now: Optional[datetime] = None,
    ) -> WorkoutSession:
        """Open a session, or return the one already open."""
        owner = UserId.from_string(user_id)
        current = await self.active(owner.value)
        if current is not None:
            logger.info("Workout already active", user_id=owner.value, workout_id=current.id)
            return current

        session = WorkoutSession(
            user_id=owner.value,
            start_ts=now or datetime.now(timezone.utc),
            workout_types=workout_types,
            intensity=intensity,
        )
        await self.repository.save(session)
        logger.info("Workout started", user_id=owner.value, workout_id=session.id)
        return session

    async def end(
        self,
        user_id: str,
        workout_types: Optional[List[str]] = None,
        intensity: Optional[Intensity] = None,
        now: Optional[datetime] = None,
    ) -> List[WorkoutSession]:
        """
        Close every open session.

        With nothing open, logs a finished session of the assumed length
        ending now, so the workout still counts.
        """
        owner = UserId.from_string(user_id)
        end_ts = now or datetime.now(timezone.utc)

        open_sessions = await self.repository.list_active(owner.value)
        if not open_sessions:
            session = WorkoutSession(
                user_id=owner.value,
                start_ts=end_ts - timedelta(minutes=ASSUMED_SESSION_MINUTES),
            ).close(end_ts, workout_types, intensity)
            await self.repository.save(session)
            logger.info(
                "Workout ended without start, assumed duration",
                user_id=owner.value,
                workout_id=session.id,
                duration_min=session.duration_min,
            )
            return [session]

        closed = [session.close(end_ts, workout_types, intensity) for session in open_sessions]
        for session in closed:
            await self.repository.save(session)

        logger.info(
            "Workouts ended",
            user_id=owner.value,
            count=len(closed),
            duration_min=[session.duration_min for session in closed],
        )
        return closed

    async def delete(self, user_id: str, workout_id: str) -> None:
        """
        Delete a session.

        Raises:
            WorkoutNotFoundError: If the session does not exist for this user
        """
        owner = UserId.from_string(user_id)
        if not await self.repository.delete(workout_id, owner.value):
            raise WorkoutNotFoundError(f"Workout {workout_id} not found")
        logger.info("Workout deleted", user_id=owner.value, workout_id=workout_id)

    async def history(self, user_id: str, limit: int = 50) -> List[WorkoutSession]:
        """Sessions newest first."""
        return await self.repository.list_by_user(UserId.from_string(user_id).value, limit=limit)
