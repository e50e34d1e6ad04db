"""Request and response models. JSON bodies use camelCase keys."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, EmailStr, Field, StringConstraints
from pydantic.alias_generators import to_camel

# Amounts are stored as decimals and returned as plain JSON numbers
Amount = Annotated[float, BeforeValidator(lambda v: float(v) if isinstance(v, Decimal) else v)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ==================== AUTH ====================


class RegisterRequest(CamelModel):
    """User registration request."""
    # Surrounding blanks are dropped; the first two characters start the referral code
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    password: str = Field(..., min_length=6, max_length=100)


class LoginRequest(CamelModel):
    """User login request."""
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    """User response. Never carries the password hash."""
    id: int
    name: str
    email: str
    phone: str | None = None
    referral_code: str
    is_admin: bool
    created_at: datetime


# ==================== BANK DETAILS ====================


class BankDetailsRequest(CamelModel):
    """Bank account fields supplied by the user."""
    account_holder_name: str = Field(..., min_length=1, max_length=255)
    bank_name: str = Field(..., min_length=1, max_length=255)
    account_number: str = Field(..., min_length=1, max_length=50)
    ifsc_code: str = Field(..., min_length=1, max_length=20)


class BankDetailsResponse(CamelModel):
    id: int
    user_id: int
    account_holder_name: str
    bank_name: str
    account_number: str
    ifsc_code: str
    created_at: datetime


# ==================== REFERRALS ====================


class ReferralCreateRequest(CamelModel):
    """New referral. Status and reward are assigned by the server."""
    referred_email: EmailStr
    referred_name: str = Field(..., min_length=1, max_length=255)


class StatusUpdateRequest(CamelModel):
    """Status change requested by an admin. Checked against the state machine."""
    status: Any = None


class ReferralResponse(CamelModel):
    id: int
    referrer_id: int
    referred_user_id: int | None = None
    referred_email: str
    referred_name: str
    status: str
    reward_amount: Amount
    created_at: datetime
    completed_at: datetime | None = None


# ==================== PAYOUTS ====================


class PayoutCreateRequest(CamelModel):
    """Payout for completed referrals of one user."""
    user_id: int
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    referral_ids: list[int] = Field(default_factory=list)


class PayoutResponse(CamelModel):
    id: int
    user_id: int
    amount: Amount
    status: str
    referral_ids: list[int]
    created_at: datetime
    completed_at: datetime | None = None


# ==================== STATISTICS ====================


class UserStatsResponse(CamelModel):
    """Referral statistics of the current user."""
    total_referrals: int
    successful_referrals: int
    pending_referrals: int
    total_earnings: float


class AdminStatsResponse(CamelModel):
    """Global statistics for the admin dashboard."""
    total_users: int
    active_referrers: int
    total_payouts: float
    pending_reviews: int
