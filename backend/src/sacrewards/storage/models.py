"""Database models for users, bank details, referrals and payouts."""

import json
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

DEFAULT_REWARD_AMOUNT = Decimal("400.00")


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class ReferralStatus(str, Enum):
    """Referral lifecycle states."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PayoutStatus(str, Enum):
    """Payout lifecycle states."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class User(Base):
    """Registered user. Every user owns exactly one referral code."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)  # bcrypt hash
    referral_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    bank_details: Mapped[Optional["BankDetails"]] = relationship(
        "BankDetails", back_populates="user", uselist=False
    )
    referrals: Mapped[list["Referral"]] = relationship(
        "Referral", back_populates="referrer", foreign_keys="Referral.referrer_id"
    )
    payouts: Mapped[list["Payout"]] = relationship("Payout", back_populates="user")

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, code={self.referral_code})>"


class BankDetails(Base):
    """Bank account used for reward payouts."""

    __tablename__ = "bank_details"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), unique=True, nullable=False
    )
    account_holder_name: Mapped[str] = mapped_column(String(255), nullable=False)
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    ifsc_code: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="bank_details")

    def __repr__(self) -> str:
        return f"<BankDetails(user={self.user_id}, bank={self.bank_name})>"


class Referral(Base):
    """One recruitment attempt by a referrer."""

    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    referrer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    # Set once the referred person registers
    referred_user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    referred_email: Mapped[str] = mapped_column(String(255), nullable=False)
    referred_name: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(
        String(20), default=ReferralStatus.PENDING.value, nullable=False, index=True
    )
    reward_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), default=DEFAULT_REWARD_AMOUNT, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    referrer: Mapped["User"] = relationship(
        "User", back_populates="referrals", foreign_keys=[referrer_id]
    )
    referred_user: Mapped[Optional["User"]] = relationship("User", foreign_keys=[referred_user_id])

    def __repr__(self) -> str:
        return f"<Referral(id={self.id}, referrer={self.referrer_id}, status={self.status})>"


class Payout(Base):
    """Reward disbursement covering one or more completed referrals."""

    __tablename__ = "payouts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=PayoutStatus.PENDING.value, nullable=False
    )
    referral_ids_json: Mapped[str] = mapped_column(
        "referral_ids", Text, default="[]", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="payouts")

    @property
    def referral_ids(self) -> list[int]:
        """Get parsed referral ids."""
        if self.referral_ids_json:
            return json.loads(self.referral_ids_json)
        return []

    @referral_ids.setter
    def referral_ids(self, value: list[int]):
        self.referral_ids_json = json.dumps(list(value))

    def __repr__(self) -> str:
        return f"<Payout(id={self.id}, user={self.user_id}, amount={self.amount})>"
