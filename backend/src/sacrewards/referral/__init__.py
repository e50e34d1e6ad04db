"""Referral system module.

- Every user gets a referral code at registration
- Referrals start pending; an admin marks them completed or cancelled
- Each completed referral earns the referrer a fixed reward
"""

from sacrewards.referral.codes import generate_referral_code
from sacrewards.referral.service import InvalidPayoutError, ReferralService
from sacrewards.referral.status import InvalidStatusError, InvalidTransitionError

__all__ = [
    "generate_referral_code",
    "ReferralService",
    "InvalidPayoutError",
    "InvalidStatusError",
    "InvalidTransitionError",
]
