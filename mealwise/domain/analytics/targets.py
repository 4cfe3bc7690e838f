"""
Target engine.

"Gentle" daily targets: start from what the user actually eats, lean a
little toward their goal, and move only a tenth of the way toward the full
protein goal each time so recommendations never jump around.
"""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Optional, Sequence

from pydantic import BaseModel, ConfigDict

from mealwise.domain.activity.models import WorkoutSession
from mealwise.domain.analytics.aggregation import HistorySnapshot, resolve_now
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.profile.models import UserProfile
from mealwise.domain.shared.numeric import round_half_up

PROTEIN_STEP = 0.1
WORKOUT_WINDOW_DAYS = 7
MIN_RECENT_WORKOUTS = 3
HIGH_LOAD_SCORE = 4
HIGH_LOAD_BUMP = 0.08
LOW_LOAD_BUMP = 0.04
PROTEIN_BUMP_SHARE = 0.6


class GentleTargets(BaseModel):
    """Daily calorie and protein targets."""

    model_config = ConfigDict(frozen=True)

    calories: int
    protein: int


# Shown when there is not enough history for personal targets
PLACEHOLDER_TARGETS = GentleTargets(calories=2300, protein=125)


def recent_workouts(
    workouts: Sequence[WorkoutSession],
    now: datetime,
    days: int = WORKOUT_WINDOW_DAYS,
) -> list[WorkoutSession]:
    """Sessions that ended (or, while open, started) within the window."""
    cutoff = now - timedelta(days=days)
    return [session for session in workouts if session.reference_ts >= cutoff]


def intensity_score(workouts: Sequence[WorkoutSession]) -> int:
    """Sum of intensity scores; sessions without intensity count 0."""
    return sum(session.intensity.score for session in workouts if session.intensity)


class TargetEngine:
    """
    Computes gentle targets from history, profile and recent training.

    Example:
        >>> TargetEngine().gentle_targets([], None) is None
        True
    """

    def base_targets(
        self,
        snapshot: HistorySnapshot,
        profile: Optional[UserProfile],
    ) -> Optional[GentleTargets]:
        """Targets before any workout adjustment, or None without enough data."""
        if profile is None or not snapshot.has_enough_data:
            return None

        avg_calories = snapshot.avg_week_calories
        avg_protein = snapshot.avg_week_protein
        if not avg_calories and not avg_protein:
            return None

        calories = max(
            0, round_half_up(avg_calories * (1 + profile.goal_direction.calorie_nudge))
        )
        protein_goal = profile.protein_target_g
        if protein_goal:
            protein = avg_protein + round_half_up((protein_goal - avg_protein) * PROTEIN_STEP)
        else:
            protein = avg_protein
        return GentleTargets(calories=calories, protein=protein)

    def adjust_for_workouts(
        self,
        targets: Optional[GentleTargets],
        workouts: Sequence[WorkoutSession],
        now: datetime,
    ) -> Optional[GentleTargets]:
        """Bump targets under sustained recent training load."""
        if targets is None or not workouts:
            return targets

        recent = recent_workouts(workouts, now)
        if len(recent) < MIN_RECENT_WORKOUTS:
            return targets

        score = intensity_score(recent)
        if score <= 0:
            return targets

        bump = HIGH_LOAD_BUMP if score >= HIGH_LOAD_SCORE else LOW_LOAD_BUMP
        return GentleTargets(
            calories=round_half_up(targets.calories * (1 + bump)),
            protein=round_half_up(targets.protein * (1 + bump * PROTEIN_BUMP_SHARE)),
        )

    def targets_for(
        self,
        snapshot: HistorySnapshot,
        profile: Optional[UserProfile],
        workouts: Sequence[WorkoutSession] = (),
    ) -> Optional[GentleTargets]:
        """Workout-adjusted targets from a precomputed snapshot."""
        return self.adjust_for_workouts(
            self.base_targets(snapshot, profile), workouts, snapshot.now
        )

    def gentle_targets(
        self,
        history: Sequence[MealLogEntry],
        profile: Optional[UserProfile],
        workouts: Sequence[WorkoutSession] = (),
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> Optional[GentleTargets]:
        """
        Personal daily targets, or None when there is not enough history.

        Requires a profile, five logged days and ten logged meals.
        """
        snapshot = HistorySnapshot.from_entries(history, resolve_now(now, tz), tz)
        return self.targets_for(snapshot, profile, workouts)
