"""
Calculators Package

Provides all calculation components for payout processing.
"""

from .aggregate import PayoutAggregator
from .bonus import BonusRuleApplicator
from .brokered import BrokeredCommissionCalculator
from .chargeback import ChargebackRuleEngine
from .kicker import SelfGenKickerCalculator, SelfGenRequirementCheck
from .override import ManualOverrideMerger
from .promo import PromoEvaluator
from .tiers import TierMatcher

__all__ = [
    "ManualOverrideMerger",
    "ChargebackRuleEngine",
    "TierMatcher",
    "BrokeredCommissionCalculator",
    "BonusRuleApplicator",
    "PromoEvaluator",
    "SelfGenKickerCalculator",
    "SelfGenRequirementCheck",
    "PayoutAggregator",
]
