"""Bank details API endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from sacrewards.api.schemas import BankDetailsRequest, BankDetailsResponse
from sacrewards.auth.middleware import get_storage, require_auth
from sacrewards.logging_config import get_logger
from sacrewards.storage.base import Storage
from sacrewards.storage.models import User

logger = get_logger(__name__)

router = APIRouter(prefix="/bank-details", tags=["bank-details"])


@router.get("", response_model=BankDetailsResponse | None)
async def get_bank_details(
    user: User = Depends(require_auth),
    storage: Storage = Depends(get_storage),
):
    """Get the current user's bank details, or null if none were saved."""
    return storage.get_bank_details(user.id)


@router.post("", response_model=BankDetailsResponse, status_code=status.HTTP_201_CREATED)
async def create_bank_details(
    body: BankDetailsRequest,
    user: User = Depends(require_auth),
    storage: Storage = Depends(get_storage),
):
    """Save bank details. Replaces the existing record if there is one."""
    details = storage.create_bank_details(user_id=user.id, **body.model_dump())
    logger.info(
        "bank_details_saved",
        user_id=user.id,
        bank=details.bank_name,
        account_number=details.account_number,
    )
    return details


@router.put("", response_model=BankDetailsResponse)
async def update_bank_details(
    body: BankDetailsRequest,
    user: User = Depends(require_auth),
    storage: Storage = Depends(get_storage),
):
    """Update existing bank details."""
    details = storage.update_bank_details(user.id, **body.model_dump())
    if not details:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Bank details not found",
        )

    logger.info("bank_details_updated", user_id=user.id)
    return details
