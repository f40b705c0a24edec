"""
AGENCY COMMISSION PAYOUT ENGINE
"""

from .models import PayoutBatchInput, PayoutBatchResult, PayoutCalculation
from .processor import PayoutCalculator, calculate_payouts
from .store import InMemoryPayoutStore

__all__ = [
    'PayoutCalculator',
    'calculate_payouts',
    'PayoutBatchInput',
    'PayoutBatchResult',
    'PayoutCalculation',
    'InMemoryPayoutStore',
]
