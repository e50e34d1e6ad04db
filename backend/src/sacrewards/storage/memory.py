"""In-memory storage adapter.

Keeps records in dictionaries and enforces the same uniqueness rules as the
relational schema. Used by tests and local experiments.
"""

import itertools
import threading
from datetime import datetime
from decimal import Decimal
from typing import Any

from sacrewards.logging_config import get_logger
from sacrewards.storage.base import AdminStats, DuplicateRecordError, Storage, UserStats
from sacrewards.storage.models import (
    BankDetails,
    Payout,
    PayoutStatus,
    Referral,
    ReferralStatus,
    User,
)

logger = get_logger(__name__)


def _newest_first(records):
    return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)


class MemoryStorage(Storage):
    """Storage kept in process memory."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: dict[int, User] = {}
        self._bank_details: dict[int, BankDetails] = {}  # keyed by user id
        self._referrals: dict[int, Referral] = {}
        self._payouts: dict[int, Payout] = {}
        self._ids = {
            "users": itertools.count(1),
            "bank_details": itertools.count(1),
            "referrals": itertools.count(1),
            "payouts": itertools.count(1),
        }

    def _apply_changes(self, record: Any, changes: dict[str, Any]) -> None:
        for key, value in changes.items():
            if not hasattr(type(record), key):
                raise ValueError(f"Unknown field '{key}' for {type(record).__name__}")
            setattr(record, key, value)

    # ==================== USERS ====================

    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> User | None:
        email = email.lower()
        return next((u for u in self._users.values() if u.email == email), None)

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        referral_code: str,
        phone: str | None = None,
        is_admin: bool = False,
    ) -> User:
        email = email.lower()
        with self._lock:
            for existing in self._users.values():
                if existing.email == email:
                    raise DuplicateRecordError("email")
                if existing.referral_code == referral_code:
                    raise DuplicateRecordError("referral_code")

            user = User(
                id=next(self._ids["users"]),
                name=name,
                email=email,
                phone=phone,
                password=password,
                referral_code=referral_code,
                is_admin=is_admin,
                created_at=datetime.utcnow(),
            )
            self._users[user.id] = user
            return user

    def update_user(self, user_id: int, **changes: Any) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            if not user:
                return None
            if "email" in changes:
                changes["email"] = changes["email"].lower()
            for field in ("email", "referral_code"):
                if field in changes and any(
                    getattr(other, field) == changes[field]
                    for other in self._users.values()
                    if other.id != user_id
                ):
                    raise DuplicateRecordError(field)
            self._apply_changes(user, changes)
            return user

    def count_users(self) -> int:
        return len(self._users)

    # ==================== BANK DETAILS ====================

    def get_bank_details(self, user_id: int) -> BankDetails | None:
        return self._bank_details.get(user_id)

    def create_bank_details(
        self,
        user_id: int,
        account_holder_name: str,
        bank_name: str,
        account_number: str,
        ifsc_code: str,
    ) -> BankDetails:
        with self._lock:
            details = self._bank_details.get(user_id)
            if details is None:
                details = BankDetails(
                    id=next(self._ids["bank_details"]),
                    user_id=user_id,
                    created_at=datetime.utcnow(),
                )
                self._bank_details[user_id] = details

            details.account_holder_name = account_holder_name
            details.bank_name = bank_name
            details.account_number = account_number
            details.ifsc_code = ifsc_code
            return details

    def update_bank_details(self, user_id: int, **changes: Any) -> BankDetails | None:
        with self._lock:
            details = self._bank_details.get(user_id)
            if not details:
                return None
            self._apply_changes(details, changes)
            return details

    # ==================== REFERRALS ====================

    def get_referral(self, referral_id: int) -> Referral | None:
        return self._referrals.get(referral_id)

    def get_referrals(self, user_id: int) -> list[Referral]:
        return _newest_first(r for r in self._referrals.values() if r.referrer_id == user_id)

    def get_all_referrals(self) -> list[Referral]:
        return _newest_first(self._referrals.values())

    def create_referral(
        self,
        referrer_id: int,
        referred_email: str,
        referred_name: str,
        reward_amount: Decimal,
        referred_user_id: int | None = None,
    ) -> Referral:
        with self._lock:
            referral = Referral(
                id=next(self._ids["referrals"]),
                referrer_id=referrer_id,
                referred_user_id=referred_user_id,
                referred_email=referred_email,
                referred_name=referred_name,
                status=ReferralStatus.PENDING.value,
                reward_amount=reward_amount,
                created_at=datetime.utcnow(),
                completed_at=None,
            )
            self._referrals[referral.id] = referral
            return referral

    def update_referral(self, referral_id: int, **changes: Any) -> Referral | None:
        with self._lock:
            referral = self._referrals.get(referral_id)
            if not referral:
                return None
            self._apply_changes(referral, changes)
            return referral

    def link_referred_user(self, email: str, user_id: int) -> int:
        email = email.lower()
        linked = 0
        with self._lock:
            for referral in self._referrals.values():
                if referral.referred_user_id is None and referral.referred_email.lower() == email:
                    referral.referred_user_id = user_id
                    linked += 1
        return linked

    # ==================== PAYOUTS ====================

    def get_payout(self, payout_id: int) -> Payout | None:
        return self._payouts.get(payout_id)

    def get_payouts(self, user_id: int) -> list[Payout]:
        return _newest_first(p for p in self._payouts.values() if p.user_id == user_id)

    def get_all_payouts(self) -> list[Payout]:
        return _newest_first(self._payouts.values())

    def create_payout(
        self,
        user_id: int,
        amount: Decimal,
        referral_ids: list[int],
        status: str = PayoutStatus.PENDING.value,
    ) -> Payout:
        with self._lock:
            payout = Payout(
                id=next(self._ids["payouts"]),
                user_id=user_id,
                amount=amount,
                status=status,
                created_at=datetime.utcnow(),
                completed_at=None,
            )
            payout.referral_ids = referral_ids
            self._payouts[payout.id] = payout
            return payout

    def update_payout(self, payout_id: int, **changes: Any) -> Payout | None:
        with self._lock:
            payout = self._payouts.get(payout_id)
            if not payout:
                return None
            self._apply_changes(payout, changes)
            return payout

    # ==================== STATISTICS ====================

    def get_user_stats(self, user_id: int) -> UserStats:
        referrals = [r for r in self._referrals.values() if r.referrer_id == user_id]
        completed = [r for r in referrals if r.status == ReferralStatus.COMPLETED.value]

        return UserStats(
            total_referrals=len(referrals),
            successful_referrals=len(completed),
            pending_referrals=sum(
                1 for r in referrals if r.status == ReferralStatus.PENDING.value
            ),
            total_earnings=float(sum((Decimal(r.reward_amount) for r in completed), Decimal("0"))),
        )

    def get_admin_stats(self) -> AdminStats:
        referrer_ids = {r.referrer_id for r in self._referrals.values()}
        completed_payouts = (
            Decimal(p.amount)
            for p in self._payouts.values()
            if p.status == PayoutStatus.COMPLETED.value
        )

        return AdminStats(
            total_users=len(self._users),
            active_referrers=sum(1 for user_id in self._users if user_id in referrer_ids),
            total_payouts=float(sum(completed_payouts, Decimal("0"))),
            pending_reviews=sum(
                1
                for r in self._referrals.values()
                if r.status == ReferralStatus.PENDING.value
            ),
        )
