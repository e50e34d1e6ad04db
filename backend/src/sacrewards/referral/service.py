"""Referral service for recording referrals, reviewing them and paying rewards."""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sacrewards.logging_config import get_logger
from sacrewards.referral.status import (
    parse_payout_status,
    parse_referral_status,
    payout_transition,
    referral_transition,
)
from sacrewards.storage.base import Storage
from sacrewards.storage.models import (
    DEFAULT_REWARD_AMOUNT,
    Payout,
    PayoutStatus,
    Referral,
    ReferralStatus,
)

logger = get_logger(__name__)


class InvalidPayoutError(ValueError):
    """Payout request names referrals it cannot cover."""


class ReferralService:
    """Service for managing referrals and payouts."""

    def __init__(self, storage: Storage, reward_amount: Decimal = DEFAULT_REWARD_AMOUNT):
        """Initialize referral service.

        Args:
            storage: Persistence handle
            reward_amount: Reward attached to every new referral
        """
        self.storage = storage
        self.reward_amount = reward_amount
        self.logger = get_logger(__name__)

    def create_referral(self, referrer_id: int, referred_email: str, referred_name: str) -> Referral:
        """Record a new referral.

        Status always starts ``pending`` and the reward is the configured
        amount; callers cannot choose either.

        Args:
            referrer_id: ID of user who referred
            referred_email: Email of the referred person
            referred_name: Name of the referred person

        Returns:
            Created referral
        """
        referred_user = self.storage.get_user_by_email(referred_email)

        referral = self.storage.create_referral(
            referrer_id=referrer_id,
            referred_email=referred_email,
            referred_name=referred_name,
            reward_amount=self.reward_amount,
            referred_user_id=referred_user.id if referred_user else None,
        )

        self.logger.info(
            "referral_created",
            referral_id=referral.id,
            referrer_id=referrer_id,
            already_registered=referred_user is not None,
        )
        return referral

    def update_status(
        self, referral_id: int, status: Any, now: datetime | None = None
    ) -> Referral | None:
        """Move a referral to a new status.

        Args:
            referral_id: Referral ID
            status: Requested status value
            now: Completion time, defaults to the current time

        Returns:
            Updated referral, or None if it does not exist

        Raises:
            InvalidStatusError: unknown status value
            InvalidTransitionError: referral already reached a terminal state
        """
        parse_referral_status(status)
        referral = self.storage.get_referral(referral_id)
        if not referral:
            return None

        old_status = referral.status
        changes = referral_transition(referral, status, now=now)
        if not changes:
            return referral

        updated = self.storage.update_referral(referral_id, **changes)

        self.logger.info(
            "referral_status_changed",
            referral_id=referral_id,
            old_status=old_status,
            new_status=changes["status"],
        )
        return updated

    def create_payout(self, user_id: int, amount: Decimal, referral_ids: list[int]) -> Payout:
        """Record a pending payout for a user.

        Args:
            user_id: Receiving user
            amount: Amount to pay
            referral_ids: Completed referrals covered by the payout

        Returns:
            Created payout

        Raises:
            InvalidPayoutError: a referral is missing, belongs to another user,
                is not completed, or is already covered by another payout
        """
        self._check_payout_referrals(user_id, referral_ids)

        payout = self.storage.create_payout(
            user_id=user_id,
            amount=amount,
            referral_ids=referral_ids,
            status=PayoutStatus.PENDING.value,
        )

        self.logger.info(
            "payout_created",
            payout_id=payout.id,
            user_id=user_id,
            amount=str(amount),
            referrals=len(referral_ids),
        )
        return payout

    def _check_payout_referrals(self, user_id: int, referral_ids: list[int]) -> None:
        if not referral_ids:
            raise InvalidPayoutError("A payout must cover at least one completed referral")
        if len(set(referral_ids)) != len(referral_ids):
            raise InvalidPayoutError("Referral listed more than once")

        # Failed payouts release their referrals
        already_paid = {
            referral_id
            for payout in self.storage.get_payouts(user_id)
            if payout.status != PayoutStatus.FAILED.value
            for referral_id in payout.referral_ids
        }

        for referral_id in referral_ids:
            referral = self.storage.get_referral(referral_id)
            if not referral or referral.referrer_id != user_id:
                raise InvalidPayoutError(f"Referral {referral_id} not found for this user")
            if referral.status != ReferralStatus.COMPLETED.value:
                raise InvalidPayoutError(f"Referral {referral_id} is not completed")
            if referral_id in already_paid:
                raise InvalidPayoutError(f"Referral {referral_id} is already in a payout")

    def update_payout_status(
        self, payout_id: int, status: Any, now: datetime | None = None
    ) -> Payout | None:
        """Move a payout to a new status.

        Returns:
            Updated payout, or None if it does not exist
        """
        parse_payout_status(status)
        payout = self.storage.get_payout(payout_id)
        if not payout:
            return None

        changes = payout_transition(payout, status, now=now)
        if not changes:
            return payout

        updated = self.storage.update_payout(payout_id, **changes)
        self.logger.info("payout_status_changed", payout_id=payout_id, new_status=changes["status"])
        return updated
