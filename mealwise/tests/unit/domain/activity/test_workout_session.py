"""Unit tests for workout session models."""

from datetime import datetime, timedelta, timezone

import pytest

from mealwise.domain.activity.models import Intensity, WorkoutSession, session_minutes

START = datetime(2026, 3, 10, 7, 0, tzinfo=timezone.utc)


class TestSessionMinutes:
    @pytest.mark.parametrize(
        "elapsed, expected",
        [
            (timedelta(seconds=0), 0),
            (timedelta(seconds=59), 1),
            (timedelta(seconds=-30), 0),
            (timedelta(seconds=60), 1),
            (timedelta(seconds=61), 2),
            (timedelta(minutes=44, seconds=30), 45),
        ],
    )
    def test_rounding(self, elapsed: timedelta, expected: int) -> None:
        assert session_minutes(START, START + elapsed) == expected


class TestWorkoutSession:
    def test_new_session_is_active(self) -> None:
        session = WorkoutSession(user_id="user_1", start_ts=START)

        assert session.is_active
        assert session.reference_ts == START
        assert session.id.startswith("workout_")

    def test_close_sets_duration(self) -> None:
        session = WorkoutSession(user_id="user_1", start_ts=START)

        closed = session.close(START + timedelta(minutes=30, seconds=1), ["run"], Intensity.MEDIUM)

        assert not closed.is_active
        assert closed.duration_min == 31
        assert closed.workout_types == ["run"]
        assert closed.intensity is Intensity.MEDIUM
        assert closed.reference_ts == closed.end_ts
        assert closed.id == session.id
        assert session.is_active

    def test_short_session_counts_one_minute(self) -> None:
        session = WorkoutSession(user_id="user_1", start_ts=START)

        assert session.close(START + timedelta(seconds=45)).duration_min == 1

    def test_naive_timestamps_are_utc(self) -> None:
        session = WorkoutSession(user_id="user_1", start_ts=datetime(2026, 3, 10, 7, 0))

        closed = session.close(datetime(2026, 3, 10, 7, 20))

        assert session.start_ts.tzinfo is timezone.utc
        assert closed.duration_min == 20

    def test_empty_types_become_none(self) -> None:
        session = WorkoutSession(user_id="user_1", start_ts=START, workout_types=[])

        assert session.workout_types is None

    def test_intensity_scores(self) -> None:
        assert [i.score for i in Intensity] == [0, 1, 2]
