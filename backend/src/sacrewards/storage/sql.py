"""SQLAlchemy storage adapter."""

from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Generator

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from sacrewards.logging_config import get_logger
from sacrewards.storage.base import (
    AdminStats,
    DuplicateRecordError,
    Storage,
    StorageError,
    UserStats,
)
from sacrewards.storage.db import Database
from sacrewards.storage.models import (
    BankDetails,
    Payout,
    PayoutStatus,
    Referral,
    ReferralStatus,
    User,
)

logger = get_logger(__name__)

# Unique columns, checked against driver error messages
_UNIQUE_FIELDS = ("referral_code", "email", "user_id")


def _duplicate_field(exc: IntegrityError) -> str | None:
    message = str(exc.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return None
    for field in _UNIQUE_FIELDS:
        if field in message:
            return field
    return "unknown"


def _apply_changes(record: Any, changes: dict[str, Any]) -> None:
    for key, value in changes.items():
        if not hasattr(type(record), key):
            raise ValueError(f"Unknown field '{key}' for {type(record).__name__}")
        setattr(record, key, value)


class SqlStorage(Storage):
    """Storage backed by a relational database through SQLAlchemy."""

    def __init__(self, database: Database):
        self.db = database

    @contextmanager
    def _session(self) -> Generator[Session, None, None]:
        """Transactional scope translating driver errors into storage errors."""
        try:
            with self.db.session() as session:
                yield session
        except IntegrityError as e:
            field = _duplicate_field(e)
            if field:
                logger.warning("unique_constraint_violated", field=field)
                raise DuplicateRecordError(field) from e
            logger.error("integrity_error", error=str(e.orig))
            raise StorageError("Integrity constraint violated") from e
        except SQLAlchemyError as e:
            logger.error("database_error", error=str(e))
            raise StorageError("Database operation failed") from e

    # ==================== LIFECYCLE ====================

    def create_tables(self) -> None:
        self.db.create_tables()

    def close(self) -> None:
        self.db.dispose()

    # ==================== USERS ====================

    def get_user(self, user_id: int) -> User | None:
        with self._session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        with self._session() as session:
            return session.scalar(select(User).where(User.email == email.lower()))

    def create_user(
        self,
        name: str,
        email: str,
        password: str,
        referral_code: str,
        phone: str | None = None,
        is_admin: bool = False,
    ) -> User:
        with self._session() as session:
            user = User(
                name=name,
                email=email.lower(),
                phone=phone,
                password=password,
                referral_code=referral_code,
                is_admin=is_admin,
            )
            session.add(user)
            session.flush()
            return user

    def update_user(self, user_id: int, **changes: Any) -> User | None:
        with self._session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            _apply_changes(user, changes)
            session.flush()
            return user

    def count_users(self) -> int:
        with self._session() as session:
            return session.scalar(select(func.count(User.id))) or 0

    # ==================== BANK DETAILS ====================

    def get_bank_details(self, user_id: int) -> BankDetails | None:
        with self._session() as session:
            return session.scalar(select(BankDetails).where(BankDetails.user_id == user_id))

    def create_bank_details(
        self,
        user_id: int,
        account_holder_name: str,
        bank_name: str,
        account_number: str,
        ifsc_code: str,
    ) -> BankDetails:
        with self._session() as session:
            details = session.scalar(select(BankDetails).where(BankDetails.user_id == user_id))
            if details is None:
                details = BankDetails(user_id=user_id)
                session.add(details)

            details.account_holder_name = account_holder_name
            details.bank_name = bank_name
            details.account_number = account_number
            details.ifsc_code = ifsc_code
            session.flush()
            return details

    def update_bank_details(self, user_id: int, **changes: Any) -> BankDetails | None:
        with self._session() as session:
            details = session.scalar(select(BankDetails).where(BankDetails.user_id == user_id))
            if not details:
                return None
            _apply_changes(details, changes)
            session.flush()
            return details

    # ==================== REFERRALS ====================

    def get_referral(self, referral_id: int) -> Referral | None:
        with self._session() as session:
            return session.get(Referral, referral_id)

    def get_referrals(self, user_id: int) -> list[Referral]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(Referral)
                    .where(Referral.referrer_id == user_id)
                    .order_by(Referral.created_at.desc(), Referral.id.desc())
                )
            )

    def get_all_referrals(self) -> list[Referral]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(Referral).order_by(Referral.created_at.desc(), Referral.id.desc())
                )
            )

    def create_referral(
        self,
        referrer_id: int,
        referred_email: str,
        referred_name: str,
        reward_amount: Decimal,
        referred_user_id: int | None = None,
    ) -> Referral:
        with self._session() as session:
            referral = Referral(
                referrer_id=referrer_id,
                referred_user_id=referred_user_id,
                referred_email=referred_email,
                referred_name=referred_name,
                status=ReferralStatus.PENDING.value,
                reward_amount=reward_amount,
            )
            session.add(referral)
            session.flush()
            return referral

    def update_referral(self, referral_id: int, **changes: Any) -> Referral | None:
        with self._session() as session:
            referral = session.get(Referral, referral_id)
            if not referral:
                return None
            _apply_changes(referral, changes)
            session.flush()
            return referral

    def link_referred_user(self, email: str, user_id: int) -> int:
        with self._session() as session:
            result = session.execute(
                update(Referral)
                .where(
                    func.lower(Referral.referred_email) == email.lower(),
                    Referral.referred_user_id.is_(None),
                )
                .values(referred_user_id=user_id)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount or 0

    # ==================== PAYOUTS ====================

    def get_payout(self, payout_id: int) -> Payout | None:
        with self._session() as session:
            return session.get(Payout, payout_id)

    def get_payouts(self, user_id: int) -> list[Payout]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(Payout)
                    .where(Payout.user_id == user_id)
                    .order_by(Payout.created_at.desc(), Payout.id.desc())
                )
            )

    def get_all_payouts(self) -> list[Payout]:
        with self._session() as session:
            return list(
                session.scalars(select(Payout).order_by(Payout.created_at.desc(), Payout.id.desc()))
            )

    def create_payout(
        self,
        user_id: int,
        amount: Decimal,
        referral_ids: list[int],
        status: str = PayoutStatus.PENDING.value,
    ) -> Payout:
        with self._session() as session:
            payout = Payout(user_id=user_id, amount=amount, status=status)
            payout.referral_ids = referral_ids
            session.add(payout)
            session.flush()
            return payout

    def update_payout(self, payout_id: int, **changes: Any) -> Payout | None:
        with self._session() as session:
            payout = session.get(Payout, payout_id)
            if not payout:
                return None
            _apply_changes(payout, changes)
            session.flush()
            return payout

    # ==================== STATISTICS ====================

    def get_user_stats(self, user_id: int) -> UserStats:
        completed = Referral.status == ReferralStatus.COMPLETED.value
        pending = Referral.status == ReferralStatus.PENDING.value

        with self._session() as session:
            total, successful, pending_count, earnings = session.execute(
                select(
                    func.count(Referral.id),
                    func.count(case((completed, 1))),
                    func.count(case((pending, 1))),
                    func.coalesce(
                        func.sum(case((completed, Referral.reward_amount), else_=0)), 0
                    ),
                ).where(Referral.referrer_id == user_id)
            ).one()

        return UserStats(
            total_referrals=int(total or 0),
            successful_referrals=int(successful or 0),
            pending_referrals=int(pending_count or 0),
            total_earnings=float(earnings or 0),
        )

    def get_admin_stats(self) -> AdminStats:
        with self._session() as session:
            total_users = session.scalar(select(func.count(User.id)))

            # Any referral row makes a user an active referrer, whatever its status
            active_referrers = session.scalar(
                select(func.count(User.id)).where(
                    User.id.in_(select(Referral.referrer_id).distinct())
                )
            )

            total_payouts = session.scalar(
                select(func.coalesce(func.sum(Payout.amount), 0)).where(
                    Payout.status == PayoutStatus.COMPLETED.value
                )
            )

            pending_reviews = session.scalar(
                select(func.count(Referral.id)).where(
                    Referral.status == ReferralStatus.PENDING.value
                )
            )

        return AdminStats(
            total_users=int(total_users or 0),
            active_referrers=int(active_referrers or 0),
            total_payouts=float(total_payouts or 0),
            pending_reviews=int(pending_reviews or 0),
        )
