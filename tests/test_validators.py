"""
Unit Tests for Input Validation and Assignment Resolution
"""

from datetime import date
from decimal import Decimal

import pytest

from payouts.directory import AssignmentDirectory, period_bounds
from payouts.exceptions import (
    AmbiguousAssignment,
    InvalidPlanConfiguration,
    InvalidTierConfiguration,
    MissingAssignment,
)
from payouts.models import (
    BonusRule,
    CompPlan,
    ManualOverride,
    PayoutBatchInput,
    ProducerAssignment,
    SelfGenKicker,
    SelfGenRequirement,
    Tier,
)
from payouts.validators import InputValidator


def valid_plan(**kwargs):
    defaults = dict(
        id="plan-1",
        name="Standard",
        tiers=(Tier(Decimal("0"), Decimal("8")), Tier(Decimal("50000"), Decimal("10"))),
    )
    defaults.update(kwargs)
    return CompPlan(**defaults)


class TestBatchValidation:

    @pytest.fixture
    def validator(self):
        return InputValidator()

    @pytest.mark.parametrize("month", [0, 13])
    def test_month_out_of_range(self, validator, month):
        with pytest.raises(ValueError, match="month"):
            validator.validate(PayoutBatchInput(month=month, year=2025, producers=()))

    def test_year_must_be_positive(self, validator):
        with pytest.raises(ValueError, match="year"):
            validator.validate(PayoutBatchInput(month=1, year=0, producers=()))

    def test_negative_override_rejected(self, validator):
        batch = PayoutBatchInput(
            month=1,
            year=2025,
            producers=(),
            overrides=(ManualOverride(producer_id="p1", written_premium=Decimal("-1")),),
        )

        with pytest.raises(ValueError, match="written_premium"):
            validator.validate(batch)

    def test_valid_batch_passes(self, validator):
        validator.validate(PayoutBatchInput(month=12, year=2025, producers=()))


class TestPlanValidation:

    @pytest.fixture
    def validator(self):
        return InputValidator()

    def test_valid_plan_passes(self, validator):
        validator.validate_plan(
            valid_plan(
                bonus_rules=(BonusRule("Bonus", "flat", Decimal("100")),),
                self_gen_kicker=SelfGenKicker("per_item", Decimal("5"), Decimal("20")),
            )
        )

    def test_duplicate_threshold(self, validator):
        plan = valid_plan(tiers=(Tier(Decimal("0"), Decimal("8")), Tier(Decimal("0"), Decimal("9"))))

        with pytest.raises(InvalidTierConfiguration):
            validator.validate_plan(plan)

    def test_negative_rate(self, validator):
        plan = valid_plan(tiers=(Tier(Decimal("0"), Decimal("-1")),))

        with pytest.raises(InvalidPlanConfiguration, match="negative"):
            validator.validate_plan(plan)

    def test_unknown_tier_metric(self, validator):
        with pytest.raises(InvalidPlanConfiguration, match="tier_metric"):
            validator.validate_plan(valid_plan(tier_metric="referrals"))

    @pytest.mark.parametrize("metric", ["premium", "items", "policies", "points", "households"])
    def test_every_tier_metric_is_accepted(self, validator, metric):
        validator.validate_plan(valid_plan(tier_metric=metric))

    @pytest.mark.parametrize(
        "payout_type", ["percent_of_premium", "flat_per_item", "flat_per_policy", "flat_per_household"]
    )
    def test_every_payout_type_is_accepted(self, validator, payout_type):
        validator.validate_plan(valid_plan(payout_type=payout_type))

    def test_unknown_payout_type(self, validator):
        with pytest.raises(InvalidPlanConfiguration, match="payout_type"):
            validator.validate_plan(valid_plan(payout_type="flat_per_referral"))

    def test_unknown_brokered_payout_type(self, validator):
        with pytest.raises(InvalidPlanConfiguration, match="brokered_payout_type"):
            validator.validate_plan(valid_plan(brokered_payout_type="per_household"))

    def test_negative_brokered_rate(self, validator):
        plan = valid_plan(brokered_payout_type="flat_per_item", brokered_flat_rate=Decimal("-5"))

        with pytest.raises(InvalidPlanConfiguration, match="brokered_flat_rate"):
            validator.validate_plan(plan)

    def test_brokered_tiers_must_increase(self, validator):
        plan = valid_plan(
            brokered_payout_type="tiered",
            brokered_tiers=(Tier(Decimal("5"), Decimal("10")), Tier(Decimal("1"), Decimal("20"))),
        )

        with pytest.raises(InvalidTierConfiguration):
            validator.validate_plan(plan)

    def test_self_gen_requirement_percent_range(self, validator):
        plan = valid_plan(self_gen_requirement=SelfGenRequirement(Decimal("101")))

        with pytest.raises(InvalidPlanConfiguration, match="min_percent"):
            validator.validate_plan(plan)

    def test_self_gen_requirement_source(self, validator):
        plan = valid_plan(self_gen_requirement=SelfGenRequirement(Decimal("20"), source="quoted"))

        with pytest.raises(InvalidPlanConfiguration, match="source"):
            validator.validate_plan(plan)

    def test_unknown_bonus_type(self, validator):
        plan = valid_plan(bonus_rules=(BonusRule("Weird", "tiered", Decimal("1")),))

        with pytest.raises(InvalidPlanConfiguration, match="bonus_type"):
            validator.validate_plan(plan)

    def test_unknown_kicker_type(self, validator):
        plan = valid_plan(self_gen_kicker=SelfGenKicker("per_referral", Decimal("5")))

        with pytest.raises(InvalidPlanConfiguration, match="kicker type"):
            validator.validate_plan(plan)

    def test_kicker_percent_above_100(self, validator):
        plan = valid_plan(self_gen_kicker=SelfGenKicker(min_self_gen_percent=Decimal("120")))

        with pytest.raises(InvalidPlanConfiguration, match="min_self_gen_percent"):
            validator.validate_plan(plan)

    def test_plan_errors_are_value_errors(self):
        assert issubclass(InvalidTierConfiguration, ValueError)


class TestAssignmentDirectory:

    @pytest.fixture
    def plan(self):
        return valid_plan()

    def test_open_ended_assignment_resolves(self, plan):
        directory = AssignmentDirectory([plan], [ProducerAssignment("p1", "plan-1")])

        assert directory.resolve("p1", 3, 2025) is plan

    def test_assignment_ended_before_period(self, plan):
        assignment = ProducerAssignment("p1", "plan-1", date(2024, 1, 1), date(2025, 2, 28))
        directory = AssignmentDirectory([plan], [assignment])

        with pytest.raises(MissingAssignment):
            directory.resolve("p1", 3, 2025)

    def test_assignment_starting_mid_period_is_active(self, plan):
        assignment = ProducerAssignment("p1", "plan-1", start_date=date(2025, 3, 15))
        directory = AssignmentDirectory([plan], [assignment])

        assert directory.resolve("p1", 3, 2025) is plan

    def test_two_active_plans_are_ambiguous(self, plan):
        other = valid_plan(id="plan-2", name="Other")
        directory = AssignmentDirectory(
            [plan, other],
            [ProducerAssignment("p1", "plan-1"), ProducerAssignment("p1", "plan-2")],
        )

        with pytest.raises(AmbiguousAssignment):
            directory.resolve("p1", 3, 2025)

    def test_duplicate_rows_for_same_plan_resolve(self, plan):
        directory = AssignmentDirectory(
            [plan],
            [ProducerAssignment("p1", "plan-1"), ProducerAssignment("p1", "plan-1")],
        )

        assert directory.resolve("p1", 3, 2025) is plan

    def test_unknown_plan_id(self):
        directory = AssignmentDirectory([], [ProducerAssignment("p1", "ghost")])

        with pytest.raises(MissingAssignment, match="unknown comp plan"):
            directory.resolve("p1", 3, 2025)

    def test_unloadable_plan(self):
        directory = AssignmentDirectory(
            [], [ProducerAssignment("p1", "broken")], invalid_plans={"broken": "KeyError: 'id'"}
        )

        with pytest.raises(InvalidPlanConfiguration, match="could not be loaded"):
            directory.resolve("p1", 3, 2025)

    def test_period_bounds_handles_leap_year(self):
        assert period_bounds(2, 2024) == (date(2024, 2, 1), date(2024, 2, 29))
