"""Referral API endpoints for the signed-in user."""

from fastapi import APIRouter, Depends, status

from sacrewards.api.schemas import (
    PayoutResponse,
    ReferralCreateRequest,
    ReferralResponse,
    UserStatsResponse,
)
from sacrewards.auth.middleware import get_referral_service, get_storage, require_auth
from sacrewards.referral.service import ReferralService
from sacrewards.storage.base import Storage
from sacrewards.storage.models import User

router = APIRouter(tags=["referrals"])


@router.get("/referrals", response_model=list[ReferralResponse])
async def list_referrals(
    user: User = Depends(require_auth),
    storage: Storage = Depends(get_storage),
):
    """Get the current user's referrals, newest first."""
    return storage.get_referrals(user.id)


@router.post("/referrals", response_model=ReferralResponse, status_code=status.HTTP_201_CREATED)
async def create_referral(
    body: ReferralCreateRequest,
    user: User = Depends(require_auth),
    referral_service: ReferralService = Depends(get_referral_service),
):
    """Record a referral.

    Status and reward amount in the body are ignored.
    """
    return referral_service.create_referral(
        referrer_id=user.id,
        referred_email=body.referred_email,
        referred_name=body.referred_name,
    )


@router.get("/user-stats", response_model=UserStatsResponse)
async def get_user_stats(
    user: User = Depends(require_auth),
    storage: Storage = Depends(get_storage),
):
    """Get referral statistics for the current user.

    Includes:
    - Total referrals made
    - Completed and pending referrals
    - Rewards earned from completed referrals
    """
    return storage.get_user_stats(user.id)


@router.get("/payouts", response_model=list[PayoutResponse])
async def list_payouts(
    user: User = Depends(require_auth),
    storage: Storage = Depends(get_storage),
):
    """Get the current user's payouts, newest first."""
    return storage.get_payouts(user.id)
