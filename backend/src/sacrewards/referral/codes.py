"""Referral code generation."""

from datetime import datetime, timezone


def generate_referral_code(name: str, now: datetime | None = None) -> str:
    """Build a referral code from a user's name and the current instant.

    Format: first two letters of the name upper-cased followed by the last
    six digits of the millisecond timestamp, e.g. ``RA482913``.

    Codes are short rather than collision-proof. The unique constraint on
    ``users.referral_code`` rejects duplicates.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    millis = int(now.timestamp() * 1000)
    return f"{name[:2].upper()}{str(millis)[-6:]}"
