"""Authentication API endpoints: register, login, logout, current user."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from sacrewards.api.rate_limit import LOGIN_LIMIT, REGISTER_LIMIT, limiter
from sacrewards.api.schemas import LoginRequest, RegisterRequest, UserResponse
from sacrewards.auth.local import EmailAlreadyRegisteredError, LocalAuthService
from sacrewards.auth.middleware import get_auth_service, get_settings, require_auth
from sacrewards.logging_config import get_logger
from sacrewards.settings import Settings
from sacrewards.storage.base import DuplicateRecordError
from sacrewards.storage.models import User

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


def _set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_hours * 3600,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    response: Response,
    body: RegisterRequest,
    auth_service: LocalAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Register a new user account.

    The referral code is generated here; any code or admin flag in the
    body is ignored.
    """
    try:
        user = auth_service.register(
            name=body.name,
            email=body.email,
            password=body.password,
            phone=body.phone,
        )
    except EmailAlreadyRegisteredError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DuplicateRecordError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Referral code already in use, please try again",
        )

    _set_session_cookie(response, auth_service.create_access_token(user), settings)
    logger.info("user_registered", user_id=user.id)
    return user


@router.post("/login", response_model=UserResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth_service: LocalAuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Login with email and password and start a session."""
    user = auth_service.authenticate(body.email, body.password)

    if not user:
        logger.warning(
            "login_failed",
            email=body.email,
            ip=request.client.host if request.client else "unknown",
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    _set_session_cookie(response, auth_service.create_access_token(user), settings)
    logger.info("user_logged_in", user_id=user.id)
    return user


@router.post("/logout")
async def logout(response: Response, settings: Settings = Depends(get_settings)):
    """End the session by clearing the cookie."""
    response.delete_cookie(settings.session_cookie_name)
    return {"success": True}


@router.get("/user", response_model=UserResponse)
async def get_me(user: User = Depends(require_auth)):
    """Get the current user."""
    return user
