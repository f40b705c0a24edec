"""
Chargeback Rule Engine

Applies a comp plan's chargeback policy to the producer's chargeback insureds.
"""

import logging
from decimal import Decimal
from typing import Iterable

from ..models import (
    ChargebackLine,
    ChargebackResult,
    ChargebackRule,
    InsuredAggregate,
    ProducerContext,
)

logger = logging.getLogger(__name__)


class ChargebackRuleEngine:
    """Decides which chargebacks reduce credited premium and commission."""

    # Policies in force longer than this are not charged back under the 3-month rule
    THREE_MONTH_RULE_DAYS = 90

    def calculate(self, ctx: ProducerContext) -> ChargebackResult:
        return self.apply(ctx.plan.chargeback_rule, ctx.metrics.chargeback_insureds)

    def apply(self, rule: ChargebackRule, insureds: Iterable[InsuredAggregate]) -> ChargebackResult:
        """
        Apply a chargeback rule.

        Rules:
        - none: chargebacks are listed for reporting, nothing is deducted
        - full: every chargeback is deducted
        - three_month: only policies in force <= 90 days are deducted.
          Missing days_in_force is deducted (never grants the exclusion).
        """
        result = ChargebackResult()

        for insured in insureds:
            premium = abs(insured.net_premium)
            commission = abs(insured.net_commission)
            applied, reason = self._decide(rule, insured)

            if applied:
                result.chargeback_premium += premium
                result.chargeback_commission += commission
            elif rule == ChargebackRule.THREE_MONTH:
                result.excluded_chargeback_count += 1

            if rule == ChargebackRule.THREE_MONTH and insured.days_in_force is None:
                result.missing_days_in_force_count += 1
                logger.warning(
                    "Chargeback for %s has no days_in_force; applying it under the 3-month rule",
                    insured.insured_name,
                )

            result.lines.append(
                ChargebackLine(
                    insured_name=insured.insured_name,
                    premium=premium,
                    commission=commission,
                    days_in_force=insured.days_in_force,
                    applied=applied,
                    reason=reason,
                )
            )

        return result

    def _decide(self, rule: ChargebackRule, insured: InsuredAggregate) -> tuple[bool, str]:
        if rule == ChargebackRule.NONE:
            return False, "Chargebacks not applied per comp plan"

        if rule == ChargebackRule.FULL:
            return True, "Full chargeback"

        days = insured.days_in_force
        if days is None:
            return True, "Days in force unknown, charged back"
        if days > self.THREE_MONTH_RULE_DAYS:
            return False, f"In force {days} days (> {self.THREE_MONTH_RULE_DAYS}), excluded"
        return True, f"In force {days} days (<= {self.THREE_MONTH_RULE_DAYS}), charged back"


def net_premium(issued_premium: Decimal, chargebacks: ChargebackResult) -> Decimal:
    """Issued premium minus applied chargebacks. Not clamped at zero."""
    return issued_premium - chargebacks.chargeback_premium
