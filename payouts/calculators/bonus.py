"""
Plan Bonus Rules

Flat and percentage bonuses defined on the comp plan itself.
"""

from ..models import BonusResult, ProducerContext
from .tiers import percent_of, quantize_money


class BonusRuleApplicator:
    """Applies a plan's bonus rules to the producer's net premium."""

    def apply(self, ctx: ProducerContext) -> BonusResult:
        """
        Rules pay only when net premium is positive and reaches the rule's floor.

        - flat: pays `amount`
        - percentage: pays `amount`% of net premium
        """
        net = ctx.net_premium
        result = BonusResult()

        if net <= 0:
            return result

        for rule in ctx.plan.bonus_rules:
            if net < rule.min_net_premium:
                continue

            if rule.bonus_type == "percentage":
                earned = quantize_money(percent_of(net, rule.amount))
            else:
                earned = quantize_money(rule.amount)

            result.amount += earned
            result.applied_rules.append(rule.name)

        return result
