"""
Tests for quota evaluation.
"""

from decimal import Decimal

import pytest

from fireguard.platform.billing.limits.schemas import QuotaCheckResult, ResourceType

THRESHOLD = Decimal("0.80")


def evaluate(current: int, limit: int) -> QuotaCheckResult:
    return QuotaCheckResult.evaluate(ResourceType.DOORS, current, limit, THRESHOLD)


class TestQuotaCheckResult:
    def test_at_limit(self):
        result = evaluate(100, 100)

        assert result.is_at_limit is True
        assert result.is_near_limit is True
        assert result.remaining == 0
        assert result.percentage == 100.0

    def test_near_but_not_at_limit(self):
        result = evaluate(81, 100)

        assert result.is_near_limit is True
        assert result.is_at_limit is False
        assert result.remaining == 19
        assert result.percentage == 81.0

    def test_threshold_is_inclusive(self):
        assert evaluate(80, 100).is_near_limit is True
        assert evaluate(79, 100).is_near_limit is False

    def test_zero_limit_is_full(self):
        result = evaluate(0, 0)

        assert result.is_at_limit is True
        assert result.is_near_limit is True
        assert result.percentage == 100.0
        assert result.remaining == 0

    def test_over_limit_clamps_remaining(self):
        result = evaluate(105, 100)

        assert result.remaining == 0
        assert result.percentage == 105.0

    @pytest.mark.parametrize("limit", [0, 1, 5, 10, 100])
    def test_at_limit_implies_near_limit(self, limit):
        for current in range(0, limit + 3):
            result = evaluate(current, limit)
            if result.is_at_limit:
                assert result.is_near_limit
            assert result.is_at_limit == (current >= limit)

    def test_limit_field(self):
        assert ResourceType.INSPECTORS.limit_field == "max_inspectors"
