"""
Payout engine exceptions.

All derive from ValueError so hosts that already map ValueError to a
validation response keep working.
"""


class PayoutError(ValueError):
    """Base exception for payout calculation problems."""


class MissingAssignment(PayoutError):
    """Producer has no active comp plan assignment for the period."""


class AmbiguousAssignment(PayoutError):
    """Producer has more than one active comp plan assignment for the period."""


class InvalidPlanConfiguration(PayoutError):
    """Comp plan data is structurally invalid."""


class InvalidTierConfiguration(InvalidPlanConfiguration):
    """Tier thresholds are duplicated or not strictly increasing."""


class PeriodAlreadyFinalized(PayoutError):
    """The statement period was already finalized."""


class InvalidStatusTransition(PayoutError):
    """A payout lifecycle transition that the state machine does not allow."""
