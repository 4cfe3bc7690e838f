"""
Nudge engine.

Scores candidate behavioral messages and keeps the top two. Capping the
visible count matters more than how many conditions fire.
"""

from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from mealwise.domain.activity.models import WorkoutSession
from mealwise.domain.analytics.aggregation import HistorySnapshot, entries_since, resolve_now
from mealwise.domain.analytics.targets import (
    MIN_RECENT_WORKOUTS,
    GentleTargets,
    TargetEngine,
    recent_workouts,
)
from mealwise.domain.meal.estimate.models import SignalLevel
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.profile.models import UserProfile

MIN_MEALS_FOR_NUDGES = 5
MAX_NUDGES = 2
SIGNAL_WINDOW_DAYS = 30
MIN_LOW_SIGNALS = 3

ENERGY_LIGHTER = "Energy intake is trending lighter than your recent range."
ENERGY_FULLER = "Energy intake is trending fuller than your recent range."
PROTEIN_LOW = "Noticed protein below your goal range. Consider a small add."
PROTEIN_SLIGHTLY_LOW = "Noticed protein slightly below your goal range. Consider a small add."
PROTEIN_NEAR_EDGE = (
    "Noticed protein near the lower edge of your goal range. A small add may help."
)
TRAINING_FUELING = (
    "Noticed solid training volume. Fueling may be slightly lighter than usual."
)


def fewer_foods_message(nutrient: str) -> str:
    return f"Noticed fewer {nutrient}-rich foods. Consider a small add."


class NudgeKind(str, Enum):
    """What a nudge is about."""

    ENERGY = "energy"
    PROTEIN = "protein"
    MICRONUTRIENT = "micronutrient"
    TRAINING = "training"
    AWARENESS = "awareness"


class Nudge(BaseModel):
    """
    A short prioritized suggestion.

    Ephemeral output of the engine; stored only to avoid repeating
    messages and to show history.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    user_id: Optional[str] = None
    kind: NudgeKind = NudgeKind.AWARENESS
    message: str = Field(..., min_length=1)
    priority: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def low_signal_counts(
    history: Sequence[MealLogEntry],
    now: datetime,
    days: int = SIGNAL_WINDOW_DAYS,
) -> Dict[str, int]:
    """
    Count ``low_appearance`` signals per lower-cased nutrient.

    Only meals from the trailing window count. Keys keep first-seen order.
    """
    counts: Dict[str, int] = {}
    for entry in entries_since(history, now, days):
        for signal in entry.estimate.micronutrient_signals:
            if signal.signal is not SignalLevel.LOW_APPEARANCE:
                continue
            key = signal.nutrient.lower()
            if key:
                counts[key] = counts.get(key, 0) + 1
    return counts


class NudgeEngine:
    """Builds, ranks and caps nudges."""

    def __init__(self, target_engine: Optional[TargetEngine] = None) -> None:
        self.target_engine = target_engine or TargetEngine()

    def candidates(
        self,
        history: Sequence[MealLogEntry],
        workouts: Sequence[WorkoutSession],
        profile: Optional[UserProfile],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> List[Nudge]:
        """Every nudge whose condition holds, unranked."""
        if len(history) < MIN_MEALS_FOR_NUDGES:
            return []

        current = resolve_now(now, tz)
        snapshot = HistorySnapshot.from_entries(history, current, tz)
        targets = self.target_engine.targets_for(snapshot, profile, workouts)
        focus = profile.focus_text if profile else ""

        energy_bias = 1 if "energy" in focus else 0
        protein_bias = 1 if "strength" in focus or "performance" in focus else 0
        micro_bias = 1 if "longevity" in focus else 0

        found: List[Nudge] = []

        energy = self._energy_nudge(snapshot, profile, targets, energy_bias)
        if energy:
            found.append(energy)

        protein = self._protein_nudge(snapshot, profile, protein_bias)
        if protein:
            found.append(protein)

        for nutrient, count in low_signal_counts(history, current).items():
            if count >= MIN_LOW_SIGNALS:
                found.append(
                    Nudge(
                        kind=NudgeKind.MICRONUTRIENT,
                        message=fewer_foods_message(nutrient),
                        priority=1 + micro_bias,
                    )
                )

        if (
            targets
            and targets.calories
            and len(recent_workouts(workouts, current)) >= MIN_RECENT_WORKOUTS
            and snapshot.avg_week_calories < targets.calories * 0.9
        ):
            found.append(Nudge(kind=NudgeKind.TRAINING, message=TRAINING_FUELING, priority=2))

        return found

    @staticmethod
    def _energy_nudge(
        snapshot: HistorySnapshot,
        profile: Optional[UserProfile],
        targets: Optional[GentleTargets],
        bias: int,
    ) -> Optional[Nudge]:
        if profile is None or not snapshot.has_enough_data:
            return None
        if not snapshot.avg_week_calories or not targets or not targets.calories:
            return None

        today = snapshot.today_calories
        target = targets.calories
        week = snapshot.avg_week_calories
        has_today = today > 0

        if has_today and today < target * 0.85 and week < target * 0.9:
            message = ENERGY_LIGHTER
        elif has_today and today > target * 1.15 and week > target * 1.1:
            message = ENERGY_FULLER
        else:
            return None
        return Nudge(kind=NudgeKind.ENERGY, message=message, priority=2 + bias)

    @staticmethod
    def _protein_nudge(
        snapshot: HistorySnapshot,
        profile: Optional[UserProfile],
        bias: int,
    ) -> Optional[Nudge]:
        if profile is None or not snapshot.avg_week_protein:
            return None
        target = profile.protein_target_g
        if not target:
            return None

        average = snapshot.avg_week_protein
        if average < target * 0.7:
            message, priority = PROTEIN_LOW, 3
        elif average < target * 0.85:
            message, priority = PROTEIN_SLIGHTLY_LOW, 2
        elif average < target * 0.95:
            message, priority = PROTEIN_NEAR_EDGE, 1
        else:
            return None
        return Nudge(kind=NudgeKind.PROTEIN, message=message, priority=priority + bias)

    @staticmethod
    def select(candidates: Sequence[Nudge], limit: int = MAX_NUDGES) -> List[Nudge]:
        """Highest priority first (stable), unique by message, at most ``limit``."""
        seen = set()
        selected: List[Nudge] = []
        for nudge in sorted(candidates, key=lambda item: -item.priority):
            if nudge.message in seen:
                continue
            seen.add(nudge.message)
            selected.append(nudge)
        return selected[:limit]

    def rank(
        self,
        history: Sequence[MealLogEntry],
        workouts: Sequence[WorkoutSession],
        profile: Optional[UserProfile],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> List[Nudge]:
        """Top nudges as models."""
        return self.select(self.candidates(history, workouts, profile, now, tz))

    def nudges(
        self,
        history: Sequence[MealLogEntry],
        workouts: Sequence[WorkoutSession],
        profile: Optional[UserProfile],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> List[str]:
        """
        Up to two nudge messages, highest priority first.

        Example:
            >>> NudgeEngine().nudges([], [], None)
            []
        """
        return [nudge.message for nudge in self.rank(history, workouts, profile, now, tz)]
