"""Status transitions for referrals and payouts.

Both records start ``pending`` and move once to a terminal state. Moving to
``completed`` stamps ``completed_at``; the other terminal state leaves it
empty.
"""

from datetime import datetime
from typing import Any

from sacrewards.storage.models import Payout, PayoutStatus, Referral, ReferralStatus


class InvalidStatusError(ValueError):
    """Requested status is not one of the allowed values."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__("Invalid status")


class InvalidTransitionError(ValueError):
    """Requested status cannot be reached from the current one."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot change status from '{current}' to '{target}'")


REFERRAL_TRANSITIONS: dict[ReferralStatus, set[ReferralStatus]] = {
    ReferralStatus.PENDING: {ReferralStatus.COMPLETED, ReferralStatus.CANCELLED},
    ReferralStatus.COMPLETED: set(),
    ReferralStatus.CANCELLED: set(),
}

PAYOUT_TRANSITIONS: dict[PayoutStatus, set[PayoutStatus]] = {
    PayoutStatus.PENDING: {PayoutStatus.COMPLETED, PayoutStatus.FAILED},
    PayoutStatus.COMPLETED: set(),
    PayoutStatus.FAILED: set(),
}


def parse_referral_status(value: Any) -> ReferralStatus:
    """Validate a raw status value.

    Raises:
        InvalidStatusError: value is not pending, completed or cancelled
    """
    try:
        return ReferralStatus(value)
    except (ValueError, TypeError):
        raise InvalidStatusError(value) from None


def parse_payout_status(value: Any) -> PayoutStatus:
    """Validate a raw payout status value.

    Raises:
        InvalidStatusError: value is not pending, completed or failed
    """
    try:
        return PayoutStatus(value)
    except (ValueError, TypeError):
        raise InvalidStatusError(value) from None


def _plan(current, target, transitions, completed, now: datetime | None) -> dict[str, Any]:
    if target == current:
        return {}
    if target not in transitions[current]:
        raise InvalidTransitionError(current.value, target.value)

    changes: dict[str, Any] = {"status": target.value}
    if target == completed:
        changes["completed_at"] = now or datetime.utcnow()
    return changes


def referral_transition(
    referral: Referral, value: Any, now: datetime | None = None
) -> dict[str, Any]:
    """Compute the column changes for moving a referral to ``value``.

    Returns an empty dict when the referral already has that status.

    Raises:
        InvalidStatusError: unknown status value
        InvalidTransitionError: referral is already completed or cancelled
    """
    target = parse_referral_status(value)
    current = ReferralStatus(referral.status)
    return _plan(current, target, REFERRAL_TRANSITIONS, ReferralStatus.COMPLETED, now)


def payout_transition(payout: Payout, value: Any, now: datetime | None = None) -> dict[str, Any]:
    """Compute the column changes for moving a payout to ``value``."""
    target = parse_payout_status(value)
    current = PayoutStatus(payout.status)
    return _plan(current, target, PAYOUT_TRANSITIONS, PayoutStatus.COMPLETED, now)
