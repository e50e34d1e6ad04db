"""Storage interface shared by every persistence adapter."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sacrewards.storage.models import BankDetails, Payout, Referral, User


class StorageError(Exception):
    """Unexpected persistence failure."""


class DuplicateRecordError(StorageError):
    """A uniqueness constraint rejected an insert or update."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Duplicate value for {field}")


@dataclass(frozen=True)
class UserStats:
    """Referral statistics for one user."""
    total_referrals: int = 0
    successful_referrals: int = 0
    pending_referrals: int = 0
    total_earnings: float = 0.0


@dataclass(frozen=True)
class AdminStats:
    """Global statistics for the admin dashboard."""
    total_users: int = 0
    active_referrers: int = 0
    total_payouts: float = 0.0
    pending_reviews: int = 0


class Storage(ABC):
    """Persistence operations used by the API.

    Implementations return model instances detached from any session, so
    callers may read them after the call returns. ``update_*`` methods
    return ``None`` when the target row does not exist.
    """

    # ==================== LIFECYCLE ====================

    def create_tables(self) -> None:
        """Prepare the backing store. No-op by default."""

    def close(self) -> None:
        """Release resources held by the adapter. No-op by default."""

    # ==================== USERS ====================

    @abstractmethod
    def get_user(self, user_id: int) -> User | None:
        ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> User | None:
        ...

    @abstractmethod
    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        referral_code: str,
        phone: str | None = None,
        is_admin: bool = False,
    ) -> User:
        """Insert a user.

        Raises:
            DuplicateRecordError: email or referral code already taken
        """

    @abstractmethod
    def update_user(self, user_id: int, **changes: Any) -> User | None:
        ...

    @abstractmethod
    def count_users(self) -> int:
        ...

    # ==================== BANK DETAILS ====================

    @abstractmethod
    def get_bank_details(self, user_id: int) -> BankDetails | None:
        ...

    @abstractmethod
    def create_bank_details(
        self,
        user_id: int,
        account_holder_name: str,
        bank_name: str,
        account_number: str,
        ifsc_code: str,
    ) -> BankDetails:
        """Insert bank details for a user, replacing the existing record if any."""

    @abstractmethod
    def update_bank_details(self, user_id: int, **changes: Any) -> BankDetails | None:
        ...

    # ==================== REFERRALS ====================

    @abstractmethod
    def get_referral(self, referral_id: int) -> Referral | None:
        ...

    @abstractmethod
    def get_referrals(self, user_id: int) -> list[Referral]:
        """Referrals made by a user, newest first."""

    @abstractmethod
    def get_all_referrals(self) -> list[Referral]:
        """All referrals, newest first."""

    @abstractmethod
    def create_referral(
        self,
        referrer_id: int,
        referred_email: str,
        referred_name: str,
        reward_amount: Decimal,
        referred_user_id: int | None = None,
    ) -> Referral:
        ...

    @abstractmethod
    def update_referral(self, referral_id: int, **changes: Any) -> Referral | None:
        ...

    @abstractmethod
    def link_referred_user(self, email: str, user_id: int) -> int:
        """Point unlinked referrals for ``email`` at a newly registered user.

        Returns:
            Number of referrals linked
        """

    # ==================== PAYOUTS ====================

    @abstractmethod
    def get_payout(self, payout_id: int) -> Payout | None:
        ...

    @abstractmethod
    def get_payouts(self, user_id: int) -> list[Payout]:
        """Payouts of a user, newest first."""

    @abstractmethod
    def get_all_payouts(self) -> list[Payout]:
        """All payouts, newest first."""

    @abstractmethod
    def create_payout(
        self,
        user_id: int,
        amount: Decimal,
        referral_ids: list[int],
        status: str = "pending",
    ) -> Payout:
        ...

    @abstractmethod
    def update_payout(self, payout_id: int, **changes: Any) -> Payout | None:
        ...

    # ==================== STATISTICS ====================

    @abstractmethod
    def get_user_stats(self, user_id: int) -> UserStats:
        ...

    @abstractmethod
    def get_admin_stats(self) -> AdminStats:
        ...
