"""Authentication dependencies for FastAPI."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sacrewards.auth.local import LocalAuthService
from sacrewards.logging_config import get_logger
from sacrewards.referral.service import ReferralService
from sacrewards.settings import Settings
from sacrewards.storage.base import Storage
from sacrewards.storage.models import User

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> Storage:
    """Persistence handle owned by the running application."""
    return request.app.state.storage


def get_auth_service(
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> LocalAuthService:
    return LocalAuthService(storage, settings)


def get_referral_service(
    storage: Storage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> ReferralService:
    return ReferralService(storage, reward_amount=settings.default_reward_amount)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: LocalAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> User | None:
    """Get current authenticated user.

    The session token comes from the session cookie, or from a Bearer
    header for non-browser clients.

    Returns:
        User or None if not authenticated
    """
    token = request.cookies.get(settings.session_cookie_name)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        return None

    user = auth_service.get_user_from_token(token)
    if user:
        # Store user in request state for later use
        request.state.user = user

    return user


def require_auth(user: User | None = Depends(get_current_user)) -> User:
    """Require authentication - raises 401 if not authenticated.

    Raises:
        HTTPException: 401 if not authenticated
    """
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def require_admin(user: User | None = Depends(get_current_user)) -> User:
    """Require admin privileges.

    Anonymous callers get the same 403 as non-admin users.

    Raises:
        HTTPException: 403 if not an authenticated admin
    """
    if not user or not user.is_admin:
        logger.warning("admin_access_denied", user_id=user.id if user else None)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
