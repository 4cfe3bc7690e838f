"""Service wiring.

Builds application services from settings. Only the in-memory
repository backend exists; any other REPOSITORY_BACKEND value is rejected.

Usage:
    from mealwise.infrastructure.factory import create_container

    async with create_container() as container:
        entry = await container.meals.analyze("user_1", image)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from mealwise.application.activity.workout_service import WorkoutService
from mealwise.application.insights.insights_service import InsightsService
from mealwise.application.meal.analysis_service import MealAnalysisService
from mealwise.config import Settings, get_settings
from mealwise.infrastructure.ai.openai_vision import OpenAIVisionEstimator
from mealwise.infrastructure.openfoodfacts.search_client import OpenFoodFactsSearchClient
from mealwise.infrastructure.persistence.in_memory import (
    InMemoryMealLogRepository,
    InMemoryNudgeRepository,
    InMemoryProfileRepository,
    InMemoryWorkoutRepository,
)

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContainer:
    """Wired services plus the adapters whose sessions they share."""

    meals: MealAnalysisService
    workouts: WorkoutService
    insights: InsightsService
    vision: OpenAIVisionEstimator
    product_search: OpenFoodFactsSearchClient

    async def __aenter__(self) -> ServiceContainer:
        """Open the HTTP session; the OpenAI client is created lazily."""
        await self.product_search.__aenter__()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.product_search.__aexit__(*args)
        await self.vision.close()


def create_container(settings: Optional[Settings] = None) -> ServiceContainer:
    """Create services for the configured backends.

    Raises:
        ValueError: If REPOSITORY_BACKEND names an unsupported backend
    """
    settings = settings or get_settings()

    if settings.repository_backend != "inmemory":
        raise ValueError(
            f"REPOSITORY_BACKEND={settings.repository_backend} not supported. "
            "Use REPOSITORY_BACKEND=inmemory"
        )

    if not settings.vision_enabled:
        logger.warning(
            "Vision provider not configured, estimates will use the fallback",
            ai_provider=settings.ai_provider,
        )

    vision = OpenAIVisionEstimator(
        api_key=settings.openai_api_key if settings.vision_enabled else None,
        model=settings.openai_model,
        timeout=settings.vision_timeout_seconds,
    )
    product_search = OpenFoodFactsSearchClient(
        timeout_seconds=settings.off_timeout_seconds,
        max_retries=settings.off_max_retries,
        page_size=settings.off_page_size,
    )

    meal_repository = InMemoryMealLogRepository()
    workout_repository = InMemoryWorkoutRepository()

    return ServiceContainer(
        meals=MealAnalysisService(
            vision=vision,
            product_search=product_search,
            meal_repository=meal_repository,
            vision_timeout=settings.vision_timeout_seconds,
        ),
        workouts=WorkoutService(workout_repository),
        insights=InsightsService(
            meal_repository=meal_repository,
            workout_repository=workout_repository,
            profile_repository=InMemoryProfileRepository(),
            nudge_repository=InMemoryNudgeRepository(),
        ),
        vision=vision,
        product_search=product_search,
    )
