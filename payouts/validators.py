"""
Input Validation for the Payout Engine

Batch-level checks raise ValueError and stop the run. Plan checks raise
InvalidPlanConfiguration, which the processor isolates to the producers on
that plan.
"""

from .calculators.tiers import TierMatcher
from .exceptions import InvalidPlanConfiguration
from .models import CompPlan, ManualOverride, PayoutBatchInput

TIER_METRICS = ("premium", "items", "policies", "points", "households")
PAYOUT_TYPES = ("percent_of_premium", "flat_per_item", "flat_per_policy", "flat_per_household")
BROKERED_PAYOUT_TYPES = ("flat_per_item", "percent_of_premium", "tiered")
SELF_GEN_SOURCES = ("written", "issued")
BONUS_TYPES = ("flat", "percentage")
KICKER_TYPES = ("percent_of_premium", "per_item", "per_policy", "per_household")


class InputValidator:
    """Validates payout input according to business rules."""

    def validate(self, batch: PayoutBatchInput) -> None:
        """Run batch-level validations. Raises ValueError if any check fails."""
        self.validate_period(batch.month, batch.year)
        for override in batch.overrides:
            self._validate_override(override)

    def validate_period(self, month: int, year: int) -> None:
        if not (1 <= month <= 12):
            raise ValueError(f"month must be between 1 and 12, got: {month}")
        if year <= 0:
            raise ValueError(f"year must be positive, got: {year}")

    def _validate_override(self, override: ManualOverride) -> None:
        if override.written_items is not None and override.written_items < 0:
            raise ValueError(
                f"Override written_items cannot be negative for producer "
                f"{override.producer_id}, got: {override.written_items}"
            )
        if override.written_premium is not None and override.written_premium < 0:
            raise ValueError(
                f"Override written_premium cannot be negative for producer "
                f"{override.producer_id}, got: {override.written_premium}"
            )

    def validate_plan(self, plan: CompPlan) -> None:
        """Validate one comp plan. Raises InvalidPlanConfiguration."""
        TierMatcher.check_thresholds(plan.tiers)

        for i, tier in enumerate(plan.tiers):
            if tier.commission_rate < 0:
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' tier {i} rate cannot be negative, got: {tier.commission_rate}"
                )

        if plan.tier_metric not in TIER_METRICS:
            raise InvalidPlanConfiguration(
                f"Plan '{plan.name}' has invalid tier_metric: {plan.tier_metric}. "
                f"Must be one of {', '.join(TIER_METRICS)}"
            )

        if plan.payout_type not in PAYOUT_TYPES:
            raise InvalidPlanConfiguration(
                f"Plan '{plan.name}' has invalid payout_type: {plan.payout_type}. "
                f"Must be one of {', '.join(PAYOUT_TYPES)}"
            )

        self._validate_brokered(plan)
        self._validate_self_gen_requirement(plan)

        for rule in plan.bonus_rules:
            if rule.bonus_type not in BONUS_TYPES:
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' bonus '{rule.name}' has invalid bonus_type: {rule.bonus_type}"
                )
            if rule.amount < 0:
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' bonus '{rule.name}' amount cannot be negative"
                )

        kicker = plan.self_gen_kicker
        if kicker is not None:
            if kicker.kicker_type not in KICKER_TYPES:
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' has invalid self-gen kicker type: {kicker.kicker_type}"
                )
            if kicker.amount < 0:
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' self-gen kicker amount cannot be negative"
                )
            if not (0 <= kicker.min_self_gen_percent <= 100):
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' min_self_gen_percent must be between 0 and 100, "
                    f"got: {kicker.min_self_gen_percent}"
                )

    def _validate_brokered(self, plan: CompPlan) -> None:
        if plan.brokered_payout_type is None:
            return
        if plan.brokered_payout_type not in BROKERED_PAYOUT_TYPES:
            raise InvalidPlanConfiguration(
                f"Plan '{plan.name}' has invalid brokered_payout_type: {plan.brokered_payout_type}"
            )
        if plan.brokered_flat_rate < 0:
            raise InvalidPlanConfiguration(
                f"Plan '{plan.name}' brokered_flat_rate cannot be negative"
            )
        TierMatcher.check_thresholds(plan.brokered_tiers)
        for i, tier in enumerate(plan.brokered_tiers):
            if tier.commission_rate < 0:
                raise InvalidPlanConfiguration(
                    f"Plan '{plan.name}' brokered tier {i} rate cannot be negative, got: {tier.commission_rate}"
                )

    def _validate_self_gen_requirement(self, plan: CompPlan) -> None:
        requirement = plan.self_gen_requirement
        if requirement is None:
            return
        if not (0 <= requirement.min_percent <= 100):
            raise InvalidPlanConfiguration(
                f"Plan '{plan.name}' self-gen requirement min_percent must be between 0 and 100, "
                f"got: {requirement.min_percent}"
            )
        if requirement.source not in SELF_GEN_SOURCES:
            raise InvalidPlanConfiguration(
                f"Plan '{plan.name}' has invalid self-gen requirement source: {requirement.source}"
            )
