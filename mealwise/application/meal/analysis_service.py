"""
Meal analysis service.

Runs the estimation pipeline for a meal photo and keeps the meal log in
sync: vision estimate, normalization, product reconciliation, range
widening, persistence.
"""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

import structlog

from mealwise.domain.meal.estimate.models import NutritionEstimate
from mealwise.domain.meal.estimate.normalizer import EstimateNormalizer
from mealwise.domain.meal.estimate.range_policy import RangeConfidencePolicy
from mealwise.domain.meal.orchestration.ports import (
    IMealLogRepository,
    IProductSearch,
    IVisionEstimator,
)
from mealwise.domain.meal.persistence.models import MealLogEntry
from mealwise.domain.meal.product.matcher import ProductMatcher
from mealwise.domain.shared.errors import MealNotFoundError
from mealwise.domain.shared.value_objects import UserId

logger = structlog.get_logger(__name__)

DEFAULT_VISION_TIMEOUT_SECONDS = 30.0


def _owner(user_id: str) -> str:
    """Canonical owner key (trimmed, non-empty)."""
    return UserId.from_string(user_id).value


class ScanMode(str, Enum):
    """Kind of second photo supplied for a precision scan."""

    LABEL = "label"
    PACKAGING = "packaging"


SCAN_HINTS = {
    ScanMode.LABEL: "Nutrition label provided. Prefer exact macro values and serving size.",
    ScanMode.PACKAGING: "Packaging/front provided. Infer exact product name and SKU.",
}


class MealAnalysisService:
    """
    Analyzes meal photos and maintains the meal log.

    Flow:
    1. Ask the vision estimator for a raw estimate (bounded by a timeout)
    2. Normalize the payload into a NutritionEstimate
    3. Reconcile with the product database when packaging was read
    4. Widen ranges of low-confidence estimates
    5. Persist the entry

    External failures never surface: vision errors give the safe fallback
    estimate, search errors keep the AI estimate.
    """

    def __init__(
        self,
        vision: IVisionEstimator,
        product_search: IProductSearch,
        meal_repository: IMealLogRepository,
        normalizer: Optional[EstimateNormalizer] = None,
        matcher: Optional[ProductMatcher] = None,
        range_policy: Optional[RangeConfidencePolicy] = None,
        vision_timeout: float = DEFAULT_VISION_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize service.

        Args:
            vision: Vision estimation port
            product_search: Product database search port
            meal_repository: Meal log persistence port
            normalizer: Estimate normalizer (default rules when omitted)
            matcher: Product matcher
            range_policy: Low-confidence widening policy
            vision_timeout: Seconds to wait for the vision estimator
        """
        self.vision = vision
        self.product_search = product_search
        self.meal_repository = meal_repository
        self.normalizer = normalizer or EstimateNormalizer()
        self.matcher = matcher or ProductMatcher()
        self.range_policy = range_policy or RangeConfidencePolicy()
        self.vision_timeout = vision_timeout

    # ═══════════════════════════════════════════════════════════
    # PIPELINE
    # ═══════════════════════════════════════════════════════════

    async def estimate(
        self,
        image: str,
        secondary_image: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> NutritionEstimate:
        """Run the full estimation pipeline without persisting anything."""
        raw = await self._fetch_raw_estimate(image, secondary_image, hint)
        estimate = self.normalizer.normalize(raw)
        estimate = await self._reconcile_with_products(estimate)
        return self.range_policy.widen_if_low_confidence(estimate)

    async def _fetch_raw_estimate(
        self,
        image: str,
        secondary_image: Optional[str],
        hint: Optional[str],
    ) -> Any:
        start_time = time.time()
        try:
            raw = await asyncio.wait_for(
                self.vision.estimate(image, secondary_image=secondary_image, hint=hint),
                timeout=self.vision_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Vision estimate timed out, using fallback",
                timeout_s=self.vision_timeout,
            )
            return None
        except Exception as e:
            logger.warning(
                "Vision estimate failed, using fallback",
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        logger.info(
            "Vision estimate received",
            time_ms=round((time.time() - start_time) * 1000, 2),
            has_secondary=secondary_image is not None,
            has_hint=bool(hint),
        )
        return raw

    async def _reconcile_with_products(self, estimate: NutritionEstimate) -> NutritionEstimate:
        if not estimate.has_packaging:
            return estimate

        query = f"{estimate.detected_brand} {estimate.detected_product}"
        try:
            candidates = await self.product_search.search(query)
        except Exception as e:
            logger.warning(
                "Product search failed, keeping AI estimate",
                query=query,
                error=str(e),
            )
            return estimate

        result = self.matcher.reconcile(estimate, candidates)
        logger.info(
            "Product reconciliation completed",
            query=query,
            candidates=len(candidates),
            matched=result.matched_product is not None,
            match_confidence=result.match_confidence,
            ranges_overridden=result.ranges_overridden,
        )
        return result.estimate

    # ═══════════════════════════════════════════════════════════
    # MEAL LOG OPERATIONS
    # ═══════════════════════════════════════════════════════════

    async def analyze(
        self,
        user_id: str,
        image: str,
        secondary_image: Optional[str] = None,
        hint: Optional[str] = None,
        thumbnail_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> MealLogEntry:
        """Analyze a new meal photo and log it.

        Returns:
            The persisted entry

        Example:
            >>> async def example(service: MealAnalysisService) -> None:
            ...     entry = await service.analyze("user_1", "data:image/jpeg;base64,...")
            ...     print(entry.display_name)
        """
        owner = _owner(user_id)
        estimate = await self.estimate(image, secondary_image, hint)
        entry = MealLogEntry(
            user_id=owner,
            timestamp=now or datetime.now(timezone.utc),
            estimate=estimate,
            thumbnail_url=thumbnail_url,
        )
        await self.meal_repository.save(entry)

        logger.info(
            "Meal logged",
            user_id=owner,
            meal_id=entry.id,
            name=estimate.primary_name,
            confidence=estimate.overall_confidence,
        )
        return entry

    async def refine(
        self,
        user_id: str,
        meal_id: str,
        image: str,
        hint: Optional[str] = None,
        secondary_image: Optional[str] = None,
        scan_mode: Optional[ScanMode] = None,
        correction_label: Optional[str] = None,
        chips: Optional[List[str]] = None,
    ) -> MealLogEntry:
        """Re-analyze a logged meal with a clarification or a precision scan.

        The new estimate replaces the old one as a whole; the correction
        label (falling back to the hint) is recorded on the entry.

        Raises:
            MealNotFoundError: If the meal does not exist for this user
        """
        entry = await self._require_meal(user_id, meal_id)

        effective_hint = SCAN_HINTS[scan_mode] if scan_mode else hint
        estimate = await self.estimate(image, secondary_image, effective_hint)

        label = correction_label or (hint if scan_mode is None else None)
        applied_chips = chips if chips is not None else ([hint] if hint and not scan_mode else [])
        refined = entry.with_refinement(estimate, label, applied_chips)
        await self.meal_repository.save(refined)

        logger.info(
            "Meal refined",
            user_id=user_id,
            meal_id=meal_id,
            scan_mode=scan_mode.value if scan_mode else None,
            name=estimate.primary_name,
            confidence=estimate.overall_confidence,
        )
        return refined

    async def correct(
        self,
        user_id: str,
        meal_id: str,
        correction_label: Optional[str] = None,
        chips: Optional[List[str]] = None,
    ) -> MealLogEntry:
        """Record a user correction without re-analyzing.

        Raises:
            MealNotFoundError: If the meal does not exist for this user
        """
        entry = await self._require_meal(user_id, meal_id)
        corrected = entry.with_refinement(entry.estimate, correction_label, chips)
        await self.meal_repository.save(corrected)
        logger.info("Meal corrected", user_id=user_id, meal_id=meal_id, label=correction_label)
        return corrected

    async def delete(self, user_id: str, meal_id: str) -> None:
        """Delete a logged meal.

        Raises:
            MealNotFoundError: If the meal does not exist for this user
        """
        deleted = await self.meal_repository.delete(meal_id, _owner(user_id))
        if not deleted:
            raise MealNotFoundError(f"Meal {meal_id} not found")
        logger.info("Meal deleted", user_id=user_id, meal_id=meal_id)

    async def history(self, user_id: str, limit: int = 50) -> List[MealLogEntry]:
        """User's logged meals, newest first."""
        return await self.meal_repository.list_by_user(_owner(user_id), limit=limit)

    async def _require_meal(self, user_id: str, meal_id: str) -> MealLogEntry:
        entry = await self.meal_repository.get_by_id(meal_id, _owner(user_id))
        if entry is None:
            raise MealNotFoundError(f"Meal {meal_id} not found")
        return entry
