"""
Unit Tests for Brokered Business Commission
"""

from decimal import Decimal

import pytest

from payouts.calculators.brokered import BrokeredCommissionCalculator
from payouts.models import CompPlan, ProducerContext, SubProducerMetrics, Tier


def make_context(brokered_premium="0", brokered_items=0, **plan_fields):
    plan = CompPlan(id="plan-b", name="Brokered Plan", tiers=(Tier(Decimal("0"), Decimal("8")),), **plan_fields)
    metrics = SubProducerMetrics(
        producer_id="p1",
        name="Jordan",
        brokered_premium=Decimal(brokered_premium),
        brokered_items=brokered_items,
    )
    return ProducerContext(metrics=metrics, plan=plan, month=3, year=2025)


class TestBrokeredCommission:

    @pytest.fixture
    def calculator(self):
        return BrokeredCommissionCalculator()

    def test_no_brokered_payout_type_pays_nothing(self, calculator):
        ctx = make_context(brokered_premium="8000", brokered_items=5)

        assert calculator.calculate(ctx) == Decimal("0.00")

    def test_flat_per_item(self, calculator):
        ctx = make_context(
            brokered_items=5,
            brokered_payout_type="flat_per_item",
            brokered_flat_rate=Decimal("20"),
        )

        assert calculator.calculate(ctx) == Decimal("100.00")

    def test_percent_of_premium(self, calculator):
        ctx = make_context(
            brokered_premium="8000",
            brokered_payout_type="percent_of_premium",
            brokered_flat_rate=Decimal("5"),
        )

        assert calculator.calculate(ctx) == Decimal("400.00")

    @pytest.mark.parametrize("items, expected", [(3, "30.00"), (6, "150.00")])
    def test_tiered_pays_matched_rate_per_item(self, calculator, items, expected):
        ctx = make_context(
            brokered_items=items,
            brokered_payout_type="tiered",
            brokered_tiers=(Tier(Decimal("0"), Decimal("10")), Tier(Decimal("5"), Decimal("25"))),
        )

        assert calculator.calculate(ctx) == Decimal(expected)

    def test_tiered_below_first_threshold(self, calculator):
        ctx = make_context(
            brokered_items=1,
            brokered_payout_type="tiered",
            brokered_tiers=(Tier(Decimal("2"), Decimal("10")),),
        )

        assert calculator.calculate(ctx) == Decimal("0.00")
