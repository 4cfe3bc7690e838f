"""Tests for WorkoutService backed by the in-memory repository."""

from datetime import timedelta

import pytest

from mealwise.application.activity.workout_service import (
    ASSUMED_SESSION_MINUTES,
    WorkoutService,
)
from mealwise.domain.activity.models import Intensity
from mealwise.domain.shared.errors import WorkoutNotFoundError
from mealwise.infrastructure.persistence.in_memory import InMemoryWorkoutRepository
from mealwise.tests.conftest import NOW


@pytest.fixture
def service() -> WorkoutService:
    return WorkoutService(InMemoryWorkoutRepository())


class TestStart:
    @pytest.mark.asyncio
    async def test_start_opens_session(self, service: WorkoutService) -> None:
        session = await service.start("user_1", ["run"], Intensity.MEDIUM, now=NOW)

        assert session.is_active
        assert session.start_ts == NOW
        assert await service.active("user_1") == session

    @pytest.mark.asyncio
    async def test_start_returns_existing(self, service: WorkoutService) -> None:
        first = await service.start("user_1", now=NOW)
        second = await service.start("user_1", now=NOW + timedelta(minutes=5))

        assert second.id == first.id
        assert len(await service.history("user_1")) == 1


class TestEnd:
    @pytest.mark.asyncio
    async def test_end_closes_open_session(self, service: WorkoutService) -> None:
        await service.start("user_1", now=NOW - timedelta(minutes=30))

        closed = await service.end("user_1", ["strength"], Intensity.HIGH, now=NOW)

        assert len(closed) == 1
        assert closed[0].end_ts == NOW
        assert closed[0].duration_min == 30
        assert closed[0].intensity is Intensity.HIGH
        assert await service.active("user_1") is None

    @pytest.mark.asyncio
    async def test_end_without_start_logs_assumed_session(
        self, service: WorkoutService
    ) -> None:
        closed = await service.end("user_1", now=NOW)

        assert len(closed) == 1
        assert closed[0].duration_min == ASSUMED_SESSION_MINUTES
        assert closed[0].start_ts == NOW - timedelta(minutes=ASSUMED_SESSION_MINUTES)
        assert await service.history("user_1") == closed


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self, service: WorkoutService) -> None:
        session = await service.start("user_1", now=NOW)

        await service.delete("user_1", session.id)

        assert await service.history("user_1") == []

    @pytest.mark.asyncio
    async def test_delete_unknown_raises(self, service: WorkoutService) -> None:
        session = await service.start("user_1", now=NOW)

        with pytest.raises(WorkoutNotFoundError):
            await service.delete("user_2", session.id)

    @pytest.mark.asyncio
    async def test_padded_user_id(self, service: WorkoutService) -> None:
        session = await service.start(" user_1 ", now=NOW)

        assert await service.active("user_1 ") == session
        await service.delete(" user_1", session.id)
        assert await service.history("user_1") == []
