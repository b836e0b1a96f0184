"""Tests for price calculation."""

import math
import random

import pytest

from printshop.pricing import (
    QUANTITY_SCALES,
    calculate_price,
    calculate_savings,
    calculate_unit_price,
    get_discount_percentage,
    get_price_breakdown,
    get_quantity_scale,
    nearest_quantity,
    round2,
    step_quantity,
)


class TestQuantityScale:
    @pytest.mark.parametrize(
        "quantity,scale",
        [
            (1, 1.00),
            (99, 1.00),
            (100, 0.95),
            (249, 0.95),
            (250, 0.90),
            (499, 0.90),
            (500, 0.85),
            (999, 0.85),
            (1000, 0.80),
            (2499, 0.80),
            (2500, 0.75),
            (4999, 0.75),
            (5000, 0.70),
            (9999, 0.70),
            (10000, 0.65),
            (10_000_000, 0.65),
        ],
    )
    def test_tier_boundaries(self, quantity, scale):
        assert get_quantity_scale(quantity) == scale

    @pytest.mark.parametrize("quantity", [0, -1, -500])
    def test_below_one_is_undiscounted(self, quantity):
        assert get_quantity_scale(quantity) == 1.0

    def test_tiers_are_contiguous(self):
        for (_, high, _), (low, _, _) in zip(QUANTITY_SCALES, QUANTITY_SCALES[1:]):
            assert low == high + 1
        assert QUANTITY_SCALES[0][0] == 1
        assert QUANTITY_SCALES[-1][1] == math.inf

    def test_scale_never_increases_with_quantity(self):
        previous = get_quantity_scale(1)
        for quantity in range(1, 12000, 7):
            scale = get_quantity_scale(quantity)
            assert 0.65 <= scale <= 1.0
            assert scale <= previous
            previous = scale


class TestCalculatePrice:
    def test_business_cards_at_100(self):
        assert calculate_price(150, 1, 1, 1, 100) == 14250

    def test_multipliers_apply(self):
        # 10 * 1.5 * 2 * 50 with no discount
        assert calculate_price(10, 1.5, 1.0, 2.0, 50) == 1500

    def test_negative_base_price_is_zero(self):
        assert calculate_price(-1, 1, 1, 1, 100) == 0

    @pytest.mark.parametrize("quantity", [0, -5])
    def test_quantity_below_one_is_zero(self, quantity):
        assert calculate_price(150, 1, 1, 1, quantity) == 0

    def test_zero_base_price(self):
        assert calculate_price(0, 1.3, 1.2, 1.6, 500) == 0

    def test_random_inputs_match_formula(self):
        rng = random.Random(42)
        for _ in range(500):
            base = rng.uniform(0, 5000)
            size = rng.uniform(0.5, 3)
            paper = rng.uniform(0.5, 3)
            side = rng.uniform(1, 2)
            quantity = rng.randint(1, 20000)

            price = calculate_price(base, size, paper, side, quantity)
            expected = base * size * paper * side * quantity * get_quantity_scale(quantity)

            assert price >= 0
            assert abs(price - expected) <= 0.005 + 1e-6

    def test_result_has_at_most_two_decimals(self):
        rng = random.Random(7)
        for _ in range(200):
            price = calculate_price(
                rng.uniform(0, 100), rng.uniform(0.5, 2), 1.15, 1.6, rng.randint(1, 3000)
            )
            assert round(price, 2) == price


class TestUnitPrice:
    def test_unit_price(self):
        assert calculate_unit_price(150, 1, 1, 1, 100) == 142.5

    def test_zero_quantity(self):
        assert calculate_unit_price(150, 1, 1, 1, 0) == 0

    def test_unit_price_never_rises_with_quantity(self):
        rng = random.Random(1234)
        for _ in range(300):
            base = rng.uniform(0.1, 500)
            size = rng.uniform(0.5, 2)
            q1 = rng.randint(1, 12000)
            q2 = rng.randint(q1, 12000)

            u1 = calculate_unit_price(base, size, 1.0, 1.0, q1)
            u2 = calculate_unit_price(base, size, 1.0, 1.0, q2)

            assert u2 <= u1 + 0.01 + 1e-9


class TestSavings:
    def test_no_savings_below_first_tier(self):
        assert calculate_savings(150, 1, 1, 1, 50) == 0

    def test_savings_at_100(self):
        assert calculate_savings(150, 1, 1, 1, 100) == 750

    def test_savings_never_negative(self):
        rng = random.Random(99)
        for _ in range(200):
            savings = calculate_savings(
                rng.uniform(0, 100), rng.uniform(0.5, 2), 1.0, 1.0, rng.randint(-10, 20000)
            )
            assert savings >= 0


class TestDiscountPercentage:
    @pytest.mark.parametrize(
        "quantity,percent",
        [(1, 0), (100, 5), (250, 10), (500, 15), (1000, 20), (2500, 25), (5000, 30), (10000, 35)],
    )
    def test_percentages(self, quantity, percent):
        assert get_discount_percentage(quantity) == percent

    def test_percentage_bounds(self):
        for quantity in range(-5, 15000, 13):
            assert 0 <= get_discount_percentage(quantity) <= 35


class TestRound2:
    @pytest.mark.parametrize(
        "value,expected",
        [(1.005, 1.01), (2.675, 2.68), (-1.005, -1.01), (14250.0, 14250.0), (0.1 + 0.2, 0.3)],
    )
    def test_half_away_from_zero(self, value, expected):
        assert round2(value) == expected

    def test_non_finite_passthrough(self):
        assert math.isinf(round2(math.inf))
        assert math.isnan(round2(math.nan))


class TestPriceBreakdown:
    def test_breakdown_matches_functions(self):
        breakdown = get_price_breakdown(150, 1.0, 1.0, 1.0, 100)

        assert breakdown.quantity_scale == 0.95
        assert breakdown.discount_percentage == 5
        assert breakdown.total_price == 14250
        assert breakdown.unit_price == 142.5
        assert breakdown.savings == 750

    def test_to_dict(self):
        data = get_price_breakdown(2.0, 1.8, 1.0, 1.0, 10).to_dict()

        assert data["base_price"] == 2.0
        assert data["size_multiplier"] == 1.8
        assert data["total_price"] == 36
        assert data["savings"] == 0


class TestQuantityStepper:
    ALLOWED = [100, 250, 500, 1000]

    def test_nearest(self):
        assert nearest_quantity(300, self.ALLOWED) == 250
        assert nearest_quantity(5000, self.ALLOWED) == 1000
        assert nearest_quantity(1, self.ALLOWED) == 100

    def test_nearest_tie_goes_to_first(self):
        assert nearest_quantity(175, [100, 250]) == 100

    def test_nearest_empty(self):
        with pytest.raises(ValueError):
            nearest_quantity(10, [])

    def test_step_up_and_down(self):
        assert step_quantity(250, self.ALLOWED, 1) == 500
        assert step_quantity(250, self.ALLOWED, -1) == 100

    def test_step_past_the_ends(self):
        assert step_quantity(1000, self.ALLOWED, 1) is None
        assert step_quantity(100, self.ALLOWED, -1) is None

    def test_step_snaps_unlisted_value(self):
        assert step_quantity(300, self.ALLOWED, -1) == 100
        assert step_quantity(300, self.ALLOWED, 1) == 500

    def test_zero_direction(self):
        assert step_quantity(250, self.ALLOWED, 0) is None
