"""Admin API endpoints: dashboard statistics, referral review, payouts."""

from fastapi import APIRouter, Depends, HTTPException, status

from sacrewards.api.schemas import (
    AdminStatsResponse,
    PayoutCreateRequest,
    PayoutResponse,
    ReferralResponse,
    StatusUpdateRequest,
)
from sacrewards.auth.middleware import get_referral_service, get_storage, require_admin
from sacrewards.logging_config import get_logger
from sacrewards.referral.service import InvalidPayoutError, ReferralService
from sacrewards.referral.status import InvalidStatusError, InvalidTransitionError
from sacrewards.storage.base import Storage
from sacrewards.storage.models import User

logger = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsResponse)
async def get_admin_stats(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    """Get global statistics."""
    return storage.get_admin_stats()


@router.get("/referrals", response_model=list[ReferralResponse])
async def list_all_referrals(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    """Get every referral, newest first."""
    return storage.get_all_referrals()


@router.patch("/referrals/{referral_id}", response_model=ReferralResponse)
async def update_referral_status(
    referral_id: int,
    body: StatusUpdateRequest,
    admin: User = Depends(require_admin),
    referral_service: ReferralService = Depends(get_referral_service),
):
    """Approve or reject a pending referral."""
    try:
        referral = referral_service.update_status(referral_id, body.status)
    except (InvalidStatusError, InvalidTransitionError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not referral:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Referral not found",
        )

    logger.info("referral_reviewed", referral_id=referral_id, admin_id=admin.id, status=referral.status)
    return referral


@router.get("/payouts", response_model=list[PayoutResponse])
async def list_all_payouts(
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
):
    """Get every payout, newest first."""
    return storage.get_all_payouts()


@router.post("/payouts", response_model=PayoutResponse, status_code=status.HTTP_201_CREATED)
async def create_payout(
    body: PayoutCreateRequest,
    admin: User = Depends(require_admin),
    storage: Storage = Depends(get_storage),
    referral_service: ReferralService = Depends(get_referral_service),
):
    """Record a pending payout for a user."""
    if not storage.get_user(body.user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    try:
        return referral_service.create_payout(
            user_id=body.user_id,
            amount=body.amount,
            referral_ids=body.referral_ids,
        )
    except InvalidPayoutError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.patch("/payouts/{payout_id}", response_model=PayoutResponse)
async def update_payout_status(
    payout_id: int,
    body: StatusUpdateRequest,
    admin: User = Depends(require_admin),
    referral_service: ReferralService = Depends(get_referral_service),
):
    """Mark a pending payout completed or failed."""
    try:
        payout = referral_service.update_payout_status(payout_id, body.status)
    except (InvalidStatusError, InvalidTransitionError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if not payout:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Payout not found",
        )

    return payout
