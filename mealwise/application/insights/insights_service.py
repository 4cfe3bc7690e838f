"""
Insights service.

Loads a user's history through the repositories and recomputes markers,
targets and nudges from scratch on every call. Nothing is cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import List, Optional

import structlog

from mealwise.domain.activity.models import WorkoutSession
from mealwise.domain.analytics.insights import (
    HomeMarkers,
    InsightsEngine,
    IntakeInsights,
    SummaryMarkers,
)
from mealwise.domain.analytics.nudges import Nudge, NudgeEngine
from mealwise.domain.analytics.targets import GentleTargets, TargetEngine
from mealwise.domain.meal.orchestration.ports import (
    IMealLogRepository,
    INudgeRepository,
    IProfileRepository,
    IWorkoutRepository,
)
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.profile.models import UserProfile

logger = structlog.get_logger(__name__)

HISTORY_LIMIT = 50
SUMMARY_HISTORY_LIMIT = 200
INSIGHTS_HISTORY_LIMIT = 500
STORED_NUDGES_LIMIT = 100


@dataclass(frozen=True)
class UserHistory:
    """Everything loaded for one user."""

    meals: List[MealLogEntry]
    workouts: List[WorkoutSession]
    profile: Optional[UserProfile]


class InsightsService:
    """Serves home/summary/insights data and maintains nudge history."""

    def __init__(
        self,
        meal_repository: IMealLogRepository,
        workout_repository: IWorkoutRepository,
        profile_repository: IProfileRepository,
        nudge_repository: INudgeRepository,
        target_engine: Optional[TargetEngine] = None,
        tz: Optional[tzinfo] = None,
    ) -> None:
        """Initialize service.

        Args:
            meal_repository: Meal log persistence port
            workout_repository: Workout persistence port
            profile_repository: Profile persistence port
            nudge_repository: Nudge history persistence port
            target_engine: Shared target engine
            tz: Timezone used for calendar days (system local when None)
        """
        self.meal_repository = meal_repository
        self.workout_repository = workout_repository
        self.profile_repository = profile_repository
        self.nudge_repository = nudge_repository
        self.target_engine = target_engine or TargetEngine()
        self.nudge_engine = NudgeEngine(self.target_engine)
        self.insights_engine = InsightsEngine(self.target_engine)
        self.tz = tz

    async def load_history(
        self,
        user_id: str,
        meal_limit: int = HISTORY_LIMIT,
        workout_limit: int = HISTORY_LIMIT,
    ) -> UserHistory:
        meals = await self.meal_repository.list_by_user(user_id, limit=meal_limit)
        workouts = await self.workout_repository.list_by_user(user_id, limit=workout_limit)
        profile = await self.profile_repository.get(user_id)
        logger.debug(
            "History loaded",
            user_id=user_id,
            meals=len(meals),
            workouts=len(workouts),
            has_profile=profile is not None,
        )
        return UserHistory(meals=meals, workouts=workouts, profile=profile)

    async def home(self, user_id: str, now: Optional[datetime] = None) -> HomeMarkers:
        history = await self.load_history(user_id)
        return self.insights_engine.home_markers(
            history.meals, history.workouts, history.profile, now, self.tz
        )

    async def summary(self, user_id: str, now: Optional[datetime] = None) -> SummaryMarkers:
        history = await self.load_history(
            user_id,
            meal_limit=SUMMARY_HISTORY_LIMIT,
            workout_limit=SUMMARY_HISTORY_LIMIT,
        )
        return self.insights_engine.summary_markers(
            history.meals, history.workouts, history.profile, now, self.tz
        )

    async def intake(self, user_id: str, now: Optional[datetime] = None) -> IntakeInsights:
        history = await self.load_history(user_id, meal_limit=INSIGHTS_HISTORY_LIMIT)
        return self.insights_engine.intake_insights(history.meals, history.profile, now, self.tz)

    async def targets(
        self, user_id: str, now: Optional[datetime] = None
    ) -> Optional[GentleTargets]:
        """Workout-adjusted gentle targets, or None without enough history."""
        history = await self.load_history(user_id)
        return self.target_engine.gentle_targets(
            history.meals, history.profile, history.workouts, now, self.tz
        )

    async def nudges(self, user_id: str, now: Optional[datetime] = None) -> List[str]:
        """
        Current top nudges; messages not seen before are stored.

        Storage failures are logged and do not affect the result.
        """
        history = await self.load_history(user_id)
        ranked = self.nudge_engine.rank(
            history.meals, history.workouts, history.profile, now, self.tz
        )
        messages = [nudge.message for nudge in ranked]
        if ranked:
            await self._store_new(user_id, ranked, now)
        return messages

    async def _store_new(
        self,
        user_id: str,
        ranked: List[Nudge],
        now: Optional[datetime],
    ) -> None:
        try:
            stored = await self.nudge_repository.list_by_user(user_id, limit=STORED_NUDGES_LIMIT)
            existing = {nudge.message for nudge in stored}
            created_at = now or datetime.now(timezone.utc)
            for nudge in ranked:
                if nudge.message in existing:
                    continue
                await self.nudge_repository.save(
                    nudge.model_copy(
                        update={"user_id": user_id, "created_at": created_at}
                    )
                )
                existing.add(nudge.message)
        except Exception as e:
            logger.warning("Nudge history update failed", user_id=user_id, error=str(e))

    async def nudge_history(self, user_id: str, limit: int = STORED_NUDGES_LIMIT) -> List[Nudge]:
        return await self.nudge_repository.list_by_user(user_id, limit=limit)
