"""Tests for the in-memory repositories."""

from datetime import timedelta

import pytest

from mealwise.domain.analytics.nudges import Nudge, NudgeKind
from mealwise.domain.profile.models import UserProfile
from mealwise.infrastructure.persistence.in_memory import (
    InMemoryMealLogRepository,
    InMemoryNudgeRepository,
    InMemoryProfileRepository,
    InMemoryWorkoutRepository,
)
from mealwise.tests.conftest import NOW, build_entry, build_workout


# ═══════════════════════════════════════════════════════════
# MEAL LOG
# ═══════════════════════════════════════════════════════════


class TestMealLogRepository:
    @pytest.fixture
    def repository(self) -> InMemoryMealLogRepository:
        return InMemoryMealLogRepository()

    @pytest.mark.asyncio
    async def test_list_newest_first_with_limit(
        self, repository: InMemoryMealLogRepository
    ) -> None:
        entries = [build_entry(NOW - timedelta(hours=h)) for h in (3, 1, 2)]
        for entry in entries:
            await repository.save(entry)
        await repository.save(build_entry(NOW, user_id="user_2"))

        listed = await repository.list_by_user("user_1", limit=2)

        assert [e.timestamp for e in listed] == [NOW - timedelta(hours=1), NOW - timedelta(hours=2)]
        assert await repository.list_by_user("user_1", limit=-1) == []
        assert repository.count() == 4

    @pytest.mark.asyncio
    async def test_save_replaces_by_id(self, repository: InMemoryMealLogRepository) -> None:
        entry = build_entry(NOW)
        await repository.save(entry)
        await repository.save(entry.with_refinement(entry.estimate, "Tacos"))

        stored = await repository.get_by_id(entry.id, "user_1")

        assert stored is not None
        assert stored.user_correction_label == "Tacos"
        assert repository.count() == 1

    @pytest.mark.asyncio
    async def test_owner_scoped(self, repository: InMemoryMealLogRepository) -> None:
        entry = build_entry(NOW)
        await repository.save(entry)

        assert await repository.get_by_id(entry.id, "user_2") is None
        assert await repository.delete(entry.id, "user_2") is False
        assert await repository.delete(entry.id, "user_1") is True
        assert await repository.get_by_id(entry.id, "user_1") is None

    @pytest.mark.asyncio
    async def test_clear(self, repository: InMemoryMealLogRepository) -> None:
        await repository.save(build_entry(NOW))
        repository.clear()

        assert repository.count() == 0


# ═══════════════════════════════════════════════════════════
# WORKOUTS, PROFILES, NUDGES
# ═══════════════════════════════════════════════════════════


class TestWorkoutRepository:
    @pytest.mark.asyncio
    async def test_active_and_history(self) -> None:
        repository = InMemoryWorkoutRepository()
        closed = build_workout(NOW - timedelta(days=1))
        open_session = closed.model_copy(
            update={"id": "w_open", "start_ts": NOW, "end_ts": None, "duration_min": None}
        )
        await repository.save(closed)
        await repository.save(open_session)

        assert [s.id for s in await repository.list_active("user_1")] == ["w_open"]
        assert [s.id for s in await repository.list_by_user("user_1")] == ["w_open", closed.id]
        assert await repository.get_by_id("w_open", "user_2") is None


class TestProfileRepository:
    @pytest.mark.asyncio
    async def test_upsert(self) -> None:
        repository = InMemoryProfileRepository()
        await repository.save(UserProfile(user_id="user_1", weight=80))
        await repository.save(UserProfile(user_id="user_1", weight=82))

        profile = await repository.get("user_1")

        assert profile is not None
        assert profile.weight == 82
        assert await repository.get("user_2") is None


class TestNudgeRepository:
    @pytest.mark.asyncio
    async def test_assigns_ids_and_orders(self) -> None:
        repository = InMemoryNudgeRepository()
        older = Nudge(user_id="user_1", kind=NudgeKind.ENERGY, message="a", created_at=NOW)
        newer = Nudge(
            user_id="user_1",
            kind=NudgeKind.PROTEIN,
            message="b",
            created_at=NOW + timedelta(minutes=1),
        )
        await repository.save(older)
        await repository.save(newer)

        stored = await repository.list_by_user("user_1")

        assert [n.message for n in stored] == ["b", "a"]
        assert all(n.id and n.id.startswith("nudge_") for n in stored)
