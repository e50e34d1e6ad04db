"""Authentication: password hashing, session tokens and access-control dependencies."""

from sacrewards.auth.local import EmailAlreadyRegisteredError, LocalAuthService
from sacrewards.auth.middleware import get_current_user, require_admin, require_auth

__all__ = [
    "EmailAlreadyRegisteredError",
    "LocalAuthService",
    "get_current_user",
    "require_admin",
    "require_auth",
]
