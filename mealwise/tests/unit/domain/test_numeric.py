"""Unit tests for numeric coercion helpers."""

import math

import pytest

from mealwise.domain.shared.numeric import coerce_clamped, to_finite, to_number


class TestToNumber:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("12.5", 12.5),
            (" 7 ", 7.0),
            (True, 1.0),
            (3, 3.0),
            ("1e400", math.inf),
            (10**400, math.inf),
            (-(10**400), -math.inf),
        ],
    )
    def test_coerces(self, value: object, expected: float) -> None:
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", float("nan"), [1], {}])
    def test_unusable_is_none(self, value: object) -> None:
        assert to_number(value) is None

    def test_huge_int_is_not_finite(self) -> None:
        assert to_finite(10**400) is None

    def test_huge_int_clamps(self) -> None:
        assert coerce_clamped(10**400, 0.4, 0.0, 1.0) == 1.0
        assert coerce_clamped(-(10**400), 0.4, 0.0, 1.0) == 0.0
