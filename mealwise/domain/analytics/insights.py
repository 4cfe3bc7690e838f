"""
Insights.

Read-side summaries built on top of aggregation, targets and nudges: the
home and summary markers, meal suggestions, nutrient notes and trends,
and the intake pattern labels.
"""

from __future__ import annotations

from datetime import datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from mealwise.domain.activity.models import WorkoutSession
from mealwise.domain.analytics.aggregation import (
    DayTotals,
    HistorySnapshot,
    RangeTotals,
    entries_since,
    resolve_now,
)
from mealwise.domain.analytics.nudges import (
    SIGNAL_WINDOW_DAYS,
    fewer_foods_message,
)
from mealwise.domain.analytics.targets import (
    PLACEHOLDER_TARGETS,
    GentleTargets,
    TargetEngine,
)
from mealwise.domain.meal.estimate.models import SignalLevel
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.profile.models import GoalDirection, UserProfile

MAX_SUGGESTIONS = 5
MAX_NUTRIENT_NOTES = 2
MAX_TRENDS = 4

# Checked in this order; first hit decides the type
TYPE_HINTS = (
    ("liquid", ("smoothie", "shake", "latte", "milk", "juice", "broth")),
    (
        "sweet",
        ("yogurt", "fruit", "berries", "granola", "pancake", "cereal", "smoothie", "ice", "dessert"),
    ),
    ("snack", ("nuts", "bar", "chips", "cracker", "cookie", "toast")),
    (
        "savory",
        ("chicken", "beef", "rice", "pasta", "salad", "bowl", "sandwich", "egg", "soup", "fish"),
    ),
)
SUGGESTION_PICK_ORDER = ("meal", "savory", "snack", "sweet", "liquid")

INSIGHT_NUTRIENTS = (
    "Iron",
    "Magnesium",
    "Vitamin D",
    "Fiber",
    "B12",
    "Calcium",
    "Potassium",
    "Omega-3",
    "Vitamin C",
    "Folate",
    "Niacin",
    "Riboflavin",
    "Thiamin",
    "Zinc",
    "Selenium",
    "Vitamin A",
    "Vitamin K",
    "Sodium",
)

STRONG_PATTERN = "Strong pattern"
EMERGING_PATTERN = "Emerging pattern"
LOW_APPEARANCE = "Low appearance"

# Shown in place of averages until there is enough history
PLACEHOLDER_AVERAGES = {"calories": 2100, "protein": 120, "fat": 65}


# ═══════════════════════════════════════════════════════════
# MODELS
# ═══════════════════════════════════════════════════════════


class FuelingState(str, Enum):
    UNDER = "under"
    ADEQUATE = "adequate"
    OVER = "over"


class WorkoutWeekSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    total_minutes: int = 0


class RecentItem(BaseModel):
    """One row of the merged activity feed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["meal", "workout"]
    ts: datetime
    meal: Optional[MealLogEntry] = None
    workout: Optional[WorkoutSession] = None


class NutrientPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    label: str


class HomeMarkers(BaseModel):
    """Everything the home screen shows."""

    model_config = ConfigDict(frozen=True)

    today_totals: RangeTotals
    week_summary: List[DayTotals]
    day_count: int
    meal_count: int
    gentle_targets: Optional[GentleTargets]
    avg_week_calories: int
    avg_week_protein: int
    recent: List[RecentItem]

    @property
    def display_targets(self) -> GentleTargets:
        return self.gentle_targets or PLACEHOLDER_TARGETS


class SummaryMarkers(BaseModel):
    """Everything the weekly summary screen shows."""

    model_config = ConfigDict(frozen=True)

    today_totals: RangeTotals
    week_summary: List[DayTotals]
    workout_summary: WorkoutWeekSummary
    day_count: int
    meal_count: int
    avg_week_calories: int
    avg_week_protein: int
    gentle_targets: Optional[GentleTargets]
    nutrient_trends: List[str]
    suggestions: List[str]
    nutrient_notes: List[str]
    fueling_state: FuelingState


class IntakeInsights(BaseModel):
    """Pattern labels for the insights screen."""

    model_config = ConfigDict(frozen=True)

    has_enough_data: bool
    avg_calories: int
    avg_protein: int
    avg_fat: int
    energy_pattern: str
    protein_pattern: str
    fat_pattern: str
    micronutrients: List[NutrientPattern]
    targets: GentleTargets


# ═══════════════════════════════════════════════════════════
# WORKOUTS AND FEED
# ═══════════════════════════════════════════════════════════


def start_of_week(now: datetime) -> datetime:
    """Sunday 00:00 of the week containing ``now``, in now's timezone."""
    days_since_sunday = (now.weekday() + 1) % 7
    sunday = now.date() - timedelta(days=days_since_sunday)
    return datetime.combine(sunday, time.min, tzinfo=now.tzinfo)


def summarize_workouts_week(
    workouts: Sequence[WorkoutSession],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> WorkoutWeekSummary:
    """Count and minutes of sessions started since the start of this week."""
    since = start_of_week(resolve_now(now, tz))
    sessions = [session for session in workouts if session.start_ts >= since]
    return WorkoutWeekSummary(
        count=len(sessions),
        total_minutes=sum(session.duration_min or 0 for session in sessions),
    )


def recent_activity(
    meals: Sequence[MealLogEntry],
    workouts: Sequence[WorkoutSession],
) -> List[RecentItem]:
    """Meals and workouts merged, newest first."""
    items = [RecentItem(kind="meal", ts=meal.timestamp, meal=meal) for meal in meals]
    items.extend(
        RecentItem(kind="workout", ts=workout.reference_ts, workout=workout)
        for workout in workouts
    )
    return sorted(items, key=lambda item: item.ts, reverse=True)


# ═══════════════════════════════════════════════════════════
# SUGGESTIONS AND NOTES
# ═══════════════════════════════════════════════════════════


def meal_type(name: str) -> str:
    """
    Rough meal type from a name.

    Example:
        >>> meal_type("Berry smoothie")
        'liquid'
        >>> meal_type("Tacos")
        'meal'
    """
    lower = name.lower()
    for kind, hints in TYPE_HINTS:
        if any(hint in lower for hint in hints):
            return kind
    return "meal"


def meal_suggestions(meals: Sequence[MealLogEntry]) -> List[str]:
    """
    Frequently logged names, weighted toward recent meals.

    ``meals`` is expected newest first. Names are picked by type so the
    list mixes full meals, savory dishes and snacks before sweets and drinks.
    """
    scores: Dict[str, float] = {}
    for index, meal in enumerate(meals):
        recency_boost = max(1, 8 - index) * 0.25
        names = [item.name for item in meal.estimate.detected_items]
        if meal.user_correction_label:
            names.insert(0, meal.user_correction_label)
        for name in names:
            scores[name] = scores.get(name, 0) + 1 + recency_boost

    ranked = sorted(scores.items(), key=lambda pair: -pair[1])
    buckets: Dict[str, List[str]] = {}
    for name, _score in ranked:
        bucket = buckets.setdefault(meal_type(name), [])
        if name not in bucket:
            bucket.append(name)

    suggestions: List[str] = []
    for kind in SUGGESTION_PICK_ORDER:
        for name in buckets.get(kind, []):
            if len(suggestions) >= MAX_SUGGESTIONS:
                return suggestions
            if name not in suggestions:
                suggestions.append(name)
    return suggestions


def nutrient_notes(meals: Sequence[MealLogEntry]) -> List[str]:
    """Notes for the first two low-appearance signals in the history."""
    low = [
        signal
        for meal in meals
        for signal in meal.estimate.micronutrient_signals
        if signal.signal is SignalLevel.LOW_APPEARANCE
    ]
    return [fewer_foods_message(signal.nutrient.lower()) for signal in low[:MAX_NUTRIENT_NOTES]]


def nutrient_trends(
    meals: Sequence[MealLogEntry],
    snapshot: HistorySnapshot,
    profile: Optional[UserProfile],
) -> List[str]:
    """Short trend labels; empty without enough history."""
    if not snapshot.has_enough_data:
        return []

    low_names = {
        signal.nutrient.lower()
        for meal in entries_since(meals, snapshot.now, SIGNAL_WINDOW_DAYS)
        for signal in meal.estimate.micronutrient_signals
        if signal.signal is SignalLevel.LOW_APPEARANCE
    }

    trends: List[str] = []
    if "iron" in low_names:
        trends.append("Likely low iron.")
    if "fiber" in low_names:
        trends.append("Low fiber trend.")
    if profile is not None and profile.goal_direction is GoalDirection.GAIN:
        target = profile.protein_target_g
        if target and snapshot.avg_week_protein < target * 0.8:
            trends.append("Protein below weight‑gain target.")
    if "b12" in low_names or "vitamin b12" in low_names:
        trends.append("Low B12 if vegetarian.")

    return list(dict.fromkeys(trends))[:MAX_TRENDS]


def fueling_state(today_calories: int, targets: Optional[GentleTargets]) -> FuelingState:
    """Today's calories against the target, with a ±15% band."""
    if not targets or not targets.calories or not today_calories:
        return FuelingState.ADEQUATE
    if today_calories < targets.calories * 0.85:
        return FuelingState.UNDER
    if today_calories > targets.calories * 1.15:
        return FuelingState.OVER
    return FuelingState.ADEQUATE


# ═══════════════════════════════════════════════════════════
# PATTERNS
# ═══════════════════════════════════════════════════════════


def energy_pattern(avg_calories: int) -> str:
    if avg_calories < 1600:
        return "Light intake pattern"
    if avg_calories < 2400:
        return "Moderate intake pattern"
    return "High intake pattern"


def protein_pattern(avg_protein: int, profile: Optional[UserProfile]) -> str:
    """Against the protein goal when weight is known, fixed cut-offs otherwise."""
    target = profile.protein_target_g if profile else None
    low_cut, moderate_cut = (target * 0.6, target * 0.9) if target else (60, 100)
    if avg_protein < low_cut:
        return "Low protein appearance"
    if avg_protein < moderate_cut:
        return "Moderate protein pattern"
    return "Strong protein pattern"


def fat_pattern(avg_fat: int) -> str:
    if avg_fat < 45:
        return "Lower fat appearance"
    if avg_fat < 80:
        return "Moderate fat pattern"
    return "Higher fat appearance"


def micronutrient_patterns(
    meals: Sequence[MealLogEntry],
    now: datetime,
) -> List[NutrientPattern]:
    """
    How often each tracked nutrient shows up in recent signals.

    Any signal level counts as an appearance; the ratio is taken over all
    logged meals.
    """
    counts: Dict[str, int] = {}
    for meal in entries_since(meals, now, SIGNAL_WINDOW_DAYS):
        for signal in meal.estimate.micronutrient_signals:
            key = signal.nutrient.lower()
            counts[key] = counts.get(key, 0) + 1

    meal_count = len(meals)
    patterns: List[NutrientPattern] = []
    for nutrient in INSIGHT_NUTRIENTS:
        ratio = counts.get(nutrient.lower(), 0) / meal_count if meal_count else 0
        if ratio >= 0.3:
            label = STRONG_PATTERN
        elif ratio >= 0.1:
            label = EMERGING_PATTERN
        else:
            label = LOW_APPEARANCE
        patterns.append(NutrientPattern(name=nutrient, label=label))
    return patterns


# ═══════════════════════════════════════════════════════════
# MARKER BUNDLES
# ═══════════════════════════════════════════════════════════


class InsightsEngine:
    """Builds the marker bundles consumed by the home, summary and insights views."""

    def __init__(self, target_engine: Optional[TargetEngine] = None) -> None:
        self.target_engine = target_engine or TargetEngine()

    def home_markers(
        self,
        meals: Sequence[MealLogEntry],
        workouts: Sequence[WorkoutSession],
        profile: Optional[UserProfile],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> HomeMarkers:
        snapshot = HistorySnapshot.from_entries(meals, now, tz)
        return HomeMarkers(
            today_totals=snapshot.today,
            week_summary=snapshot.week,
            day_count=snapshot.day_count,
            meal_count=snapshot.meal_count,
            gentle_targets=self.target_engine.targets_for(snapshot, profile, workouts),
            avg_week_calories=snapshot.avg_week_calories,
            avg_week_protein=snapshot.avg_week_protein,
            recent=recent_activity(meals, workouts),
        )

    def summary_markers(
        self,
        meals: Sequence[MealLogEntry],
        workouts: Sequence[WorkoutSession],
        profile: Optional[UserProfile],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> SummaryMarkers:
        snapshot = HistorySnapshot.from_entries(meals, now, tz)
        targets = self.target_engine.targets_for(snapshot, profile, workouts)
        return SummaryMarkers(
            today_totals=snapshot.today,
            week_summary=snapshot.week,
            workout_summary=summarize_workouts_week(workouts, snapshot.now),
            day_count=snapshot.day_count,
            meal_count=snapshot.meal_count,
            avg_week_calories=snapshot.avg_week_calories,
            avg_week_protein=snapshot.avg_week_protein,
            gentle_targets=targets,
            nutrient_trends=nutrient_trends(meals, snapshot, profile),
            suggestions=meal_suggestions(meals),
            nutrient_notes=nutrient_notes(meals),
            fueling_state=fueling_state(snapshot.today_calories, targets),
        )

    def intake_insights(
        self,
        meals: Sequence[MealLogEntry],
        profile: Optional[UserProfile],
        now: Optional[datetime] = None,
        tz: Optional[tzinfo] = None,
    ) -> IntakeInsights:
        """Pattern labels, or neutral placeholders until there is enough history."""
        snapshot = HistorySnapshot.from_entries(meals, now, tz)
        targets = self.target_engine.base_targets(snapshot, profile) or PLACEHOLDER_TARGETS

        if not snapshot.has_enough_data:
            return IntakeInsights(
                has_enough_data=False,
                avg_calories=PLACEHOLDER_AVERAGES["calories"],
                avg_protein=PLACEHOLDER_AVERAGES["protein"],
                avg_fat=PLACEHOLDER_AVERAGES["fat"],
                energy_pattern="Moderate intake pattern",
                protein_pattern="Moderate protein pattern",
                fat_pattern="Moderate fat pattern",
                micronutrients=[
                    NutrientPattern(name=name, label=EMERGING_PATTERN)
                    for name in INSIGHT_NUTRIENTS
                ],
                targets=targets,
            )

        return IntakeInsights(
            has_enough_data=True,
            avg_calories=snapshot.avg_week_calories,
            avg_protein=snapshot.avg_week_protein,
            avg_fat=snapshot.avg_week_fat,
            energy_pattern=energy_pattern(snapshot.avg_week_calories),
            protein_pattern=protein_pattern(snapshot.avg_week_protein, profile),
            fat_pattern=fat_pattern(snapshot.avg_week_fat),
            micronutrients=micronutrient_patterns(meals, snapshot.now),
            targets=targets,
        )
