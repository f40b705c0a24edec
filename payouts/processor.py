"""
Payout Calculator - Main Orchestrator

Coordinates the per-producer payout pipeline through discrete, testable steps.
"""

import json
import logging
from typing import Any, Dict, Iterable, Sequence

from .calculators import (
    BonusRuleApplicator,
    BrokeredCommissionCalculator,
    ChargebackRuleEngine,
    ManualOverrideMerger,
    PayoutAggregator,
    PromoEvaluator,
    SelfGenKickerCalculator,
    SelfGenRequirementCheck,
    TierMatcher,
)
from .calculators.chargeback import net_premium
from .directory import AssignmentDirectory, period_bounds
from .exceptions import AmbiguousAssignment, InvalidPlanConfiguration, MissingAssignment
from .models import (
    CompPlan,
    ManualOverride,
    PayoutBatchInput,
    PayoutBatchResult,
    PayoutCalculation,
    ProducerAssignment,
    ProducerContext,
    Promo,
    SaleRecord,
    SubProducerMetrics,
)
from .output import OutputBuilder
from .validators import InputValidator

logger = logging.getLogger(__name__)


class PayoutCalculator:
    """
    Main orchestrator for payout processing.

    Implements a clear pipeline pattern, per producer:
    1. Resolve Comp Plan Assignment
    2. Validate Plan
    3. Apply Manual Override
    4. Apply Chargeback Rule
    5. Check Self-Gen Requirement
    6. Match Tier / Base Commission
    7. Brokered Commission
    8. Apply Plan Bonus Rules
    9. Evaluate Promos
    10. Calculate Self-Gen Kicker
    11. Aggregate Payout

    A problem with one producer becomes a warning; the batch always continues.
    """

    def __init__(self):
        # Initialize all calculators
        self.validator = InputValidator()
        self.override_merger = ManualOverrideMerger()
        self.chargeback_engine = ChargebackRuleEngine()
        self.tier_matcher = TierMatcher()
        self.requirement_check = SelfGenRequirementCheck()
        self.brokered_calculator = BrokeredCommissionCalculator(self.tier_matcher)
        self.bonus_applicator = BonusRuleApplicator()
        self.promo_evaluator = PromoEvaluator()
        self.kicker_calculator = SelfGenKickerCalculator()
        self.aggregator = PayoutAggregator()
        self.output_builder = OutputBuilder()

    def process(self, batch: PayoutBatchInput) -> PayoutBatchResult:
        """
        Calculate payouts for every producer in the batch.

        Args:
            batch: PayoutBatchInput object

        Returns:
            PayoutBatchResult with one draft PayoutCalculation per payable
            producer and the batch warnings
        """
        self.validator.validate(batch)

        directory = AssignmentDirectory(batch.plans, batch.assignments, batch.invalid_plans)
        overrides = self.override_merger.index(batch.overrides)
        agency_records = tuple(
            record for producer in batch.producers for record in producer.promo_records()
        )

        result = PayoutBatchResult()
        if not batch.producers and not batch.invalid_producers:
            logger.warning("No producers in batch for %02d/%d", batch.month, batch.year)
            result.warnings.append("No sub-producer data available for this statement")

        for label, reason in batch.invalid_producers:
            logger.error("Skipping malformed producer record %s: %s", label, reason)
            result.warnings.append(f"{label}: {reason}; payout not calculated")

        for metrics in batch.producers:
            payout = self._process_producer(
                metrics, batch, directory, overrides, agency_records, result.warnings
            )
            if payout is not None:
                result.payouts.append(payout)

        logger.info(
            "Calculated %d payouts for %02d/%d (%d producers, %d warnings)",
            len(result.payouts), batch.month, batch.year, len(batch.producers), len(result.warnings),
        )
        return result

    def process_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process a payout batch from raw dictionary input.

        Convenience method for API usage.
        """
        batch = PayoutBatchInput.from_dict(data)
        result = self.process(batch)
        return self.output_builder.build(result)

    def _process_producer(
        self,
        metrics: SubProducerMetrics,
        batch: PayoutBatchInput,
        directory: AssignmentDirectory,
        overrides: Dict[str, ManualOverride],
        agency_records: Sequence[SaleRecord],
        warnings: list[str],
    ) -> PayoutCalculation | None:
        # Step 1: Resolve plan
        plan = self._resolve_plan(metrics, batch, directory, warnings)
        if plan is None:
            return None

        # Step 2: Validate plan (never guess a tier from broken thresholds)
        try:
            self.validator.validate_plan(plan)
        except InvalidPlanConfiguration as e:
            logger.error("Invalid comp plan '%s' for %s: %s", plan.name, metrics.name, e)
            warnings.append(
                f"{metrics.name}: comp plan '{plan.name}' is misconfigured ({e}); payout not calculated"
            )
            return None

        # Step 3: Apply override
        adjusted, audit = self.override_merger.merge(metrics, overrides.get(metrics.producer_id))
        ctx = ProducerContext(
            metrics=adjusted,
            plan=plan,
            month=batch.month,
            year=batch.year,
            override_audit=audit,
        )

        # Step 4: Chargebacks and net premium
        ctx.chargebacks = self.chargeback_engine.calculate(ctx)
        if ctx.chargebacks.missing_days_in_force_count:
            warnings.append(
                f"{metrics.name}: {ctx.chargebacks.missing_days_in_force_count} chargeback(s) "
                f"missing days in force were charged back under the 3-month rule"
            )
        ctx.net_premium = net_premium(adjusted.issued_premium, ctx.chargebacks)

        # Step 5: Self-gen requirement
        ctx.self_gen_requirement_met = self.requirement_check.check(ctx)
        disqualified = (
            ctx.self_gen_requirement_met is False
            and plan.self_gen_requirement.affects_qualification
        )

        # Step 6: Tier and base commission (no tier when the requirement disqualifies)
        ctx.commission_units = self.tier_matcher.payout_units(ctx)
        if not disqualified:
            ctx.tier_match = self.tier_matcher.calculate(ctx)
        ctx.base_commission = self.tier_matcher.commission(ctx)

        # Step 7: Brokered business
        ctx.brokered_commission = self.brokered_calculator.calculate(ctx)

        # Step 8: Plan bonus rules
        ctx.plan_bonus = self.bonus_applicator.apply(ctx)

        # Step 9: Promos
        own_records = adjusted.promo_records()
        period_start, period_end = period_bounds(batch.month, batch.year)
        ctx.promos = self.promo_evaluator.evaluate(
            adjusted.producer_id,
            batch.promos,
            lambda promo: agency_records if promo.is_agency_wide else own_records,
            period_start,
            period_end,
            warnings,
        )

        # Step 10: Self-gen kicker
        ctx.kicker = self.kicker_calculator.calculate(ctx)

        # Step 11: Aggregate
        return self.aggregator.build(ctx)

    def _resolve_plan(
        self,
        metrics: SubProducerMetrics,
        batch: PayoutBatchInput,
        directory: AssignmentDirectory,
        warnings: list[str],
    ) -> CompPlan | None:
        try:
            return directory.resolve(metrics.producer_id, batch.month, batch.year)
        except MissingAssignment as e:
            logger.warning("Skipping %s: %s", metrics.name, e)
            warnings.append(f"{metrics.name} has no active comp plan assignment")
        except AmbiguousAssignment as e:
            logger.warning("Skipping %s: %s", metrics.name, e)
            warnings.append(
                f"{metrics.name} has more than one active comp plan assignment; payout not calculated"
            )
        except InvalidPlanConfiguration as e:
            logger.error("Skipping %s: %s", metrics.name, e)
            warnings.append(f"{metrics.name}: {e}; payout not calculated")
        return None


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def calculate_payouts(
    producers: Iterable[SubProducerMetrics],
    month: int,
    year: int,
    overrides: Iterable[ManualOverride] = (),
    *,
    plans: Iterable[CompPlan],
    assignments: Iterable[ProducerAssignment],
    promos: Iterable[Promo] = (),
) -> PayoutBatchResult:
    """Calculate draft payouts for a statement period."""
    batch = PayoutBatchInput(
        month=month,
        year=year,
        producers=tuple(producers),
        plans=tuple(plans),
        assignments=tuple(assignments),
        promos=tuple(promos),
        overrides=tuple(overrides),
    )
    return PayoutCalculator().process(batch)


def calculate_payouts_from_dict(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """Process a payout batch from a Python dict and return a Python dict."""
    calculator = PayoutCalculator()
    return calculator.process_from_dict(input_data)


def calculate_payouts_from_json(json_input: str) -> str:
    """
    Process a payout batch from JSON string input and return JSON string output.
    """
    try:
        input_data = json.loads(json_input)
        calculator = PayoutCalculator()
        result = calculator.process_from_dict(input_data)
        return json.dumps(result, indent=2)

    except (ValueError, KeyError, TypeError) as e:
        error_response = {"error": str(e), "status": "validation_failed"}
        return json.dumps(error_response, indent=2)
