"""Unit tests for user profile models."""

import pytest

from mealwise.domain.profile.models import GoalDirection, UserProfile


class TestGoalDirection:
    @pytest.mark.parametrize(
        "goal, factor, nudge",
        [
            (GoalDirection.GAIN, 2.2, 0.05),
            (GoalDirection.LOSE, 1.6, -0.05),
            (GoalDirection.MAINTAIN, 1.8, 0.0),
            (GoalDirection.BALANCE, 1.8, 0.0),
        ],
    )
    def test_tables(self, goal: GoalDirection, factor: float, nudge: float) -> None:
        assert goal.protein_factor == factor
        assert goal.calorie_nudge == nudge


class TestUserProfile:
    def test_recomposition_maps_to_balance(self) -> None:
        profile = UserProfile(user_id="u", goal_direction="recomposition")

        assert profile.goal_direction is GoalDirection.BALANCE

    def test_missing_goal_is_maintain(self) -> None:
        assert UserProfile(user_id="u", goal_direction=None).goal_direction is GoalDirection.MAINTAIN

    def test_imperial_weight_converted(self) -> None:
        profile = UserProfile(user_id="u", weight=200, units="imperial", goal_direction="gain")

        assert profile.weight_kg == pytest.approx(90.7184)
        assert profile.protein_target_g == pytest.approx(90.7184 * 2.2)

    def test_no_weight_no_protein_target(self) -> None:
        assert UserProfile(user_id="u").protein_target_g is None

    def test_focus_text(self) -> None:
        assert UserProfile(user_id="u", body_priority="Strength").focus_text == "strength"
        assert (
            UserProfile(user_id="u", body_priority="x", freeform_focus="More Energy").focus_text
            == "more energy"
        )
        assert UserProfile(user_id="u").focus_text == ""
