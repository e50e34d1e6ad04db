"""Local authentication service (email/password)."""

from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from sacrewards.logging_config import get_logger
from sacrewards.referral.codes import generate_referral_code
from sacrewards.settings import Settings
from sacrewards.storage.base import DuplicateRecordError, Storage
from sacrewards.storage.models import User

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

JWT_ALGORITHM = "HS256"


class EmailAlreadyRegisteredError(ValueError):
    """Registration attempted with an email that already has an account."""

    def __init__(self):
        super().__init__("Email already registered")


class LocalAuthService:
    """Authentication service for local (email/password) users."""

    def __init__(self, storage: Storage, settings: Settings):
        """Initialize auth service.

        Args:
            storage: Persistence handle
            settings: Application settings (secret key, token lifetime)
        """
        self.storage = storage
        self.secret_key = settings.secret_key
        self.expire_hours = settings.session_expire_hours
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str) -> bool:
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== USER MANAGEMENT ====================

    def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: str | None = None,
        now: datetime | None = None,
    ) -> User:
        """Create a new local user with a fresh referral code.

        Referrals already made for this email are linked to the new account.

        Args:
            name: Display name, also the referral code prefix
            email: User email
            password: Plain password
            phone: Optional phone number
            now: Registration instant used for the referral code

        Returns:
            Created user

        Raises:
            EmailAlreadyRegisteredError: If email already exists
            DuplicateRecordError: If the generated referral code is taken
        """
        if self.storage.get_user_by_email(email):
            raise EmailAlreadyRegisteredError()

        referral_code = generate_referral_code(name, now=now)
        try:
            user = self.storage.create_user(
                name=name,
                email=email,
                password=self.hash_password(password),
                referral_code=referral_code,
                phone=phone,
            )
        except DuplicateRecordError as e:
            if e.field == "email":
                raise EmailAlreadyRegisteredError() from e
            self.logger.warning("referral_code_collision", code=referral_code)
            raise

        linked = self.storage.link_referred_user(user.email, user.id)
        self.logger.info(
            "user_created",
            user_id=user.id,
            referral_code=user.referral_code,
            linked_referrals=linked,
        )
        return user

    def authenticate(self, email: str, password: str) -> User | None:
        """Authenticate a user.

        Returns:
            User if the credentials match, None otherwise
        """
        user = self.storage.get_user_by_email(email)
        if not user or not user.password:
            return None

        if not self.verify_password(password, user.password):
            return None

        self.logger.info("user_authenticated", user_id=user.id)
        return user

    # ==================== SESSION TOKENS ====================

    def create_access_token(self, user: User, expires_delta: timedelta | None = None) -> str:
        """Create a signed session token for a user."""
        if expires_delta is None:
            expires_delta = timedelta(hours=self.expire_hours)

        issued_at = datetime.utcnow()
        payload = {
            "sub": str(user.id),
            "admin": user.is_admin,
            "exp": issued_at + expires_delta,
            "iat": issued_at,
        }
        return jwt.encode(payload, self.secret_key, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict[str, Any] | None:
        """Verify and decode a session token.

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            self.logger.debug("token_verification_failed", error=str(e))
            return None

    def get_user_from_token(self, token: str) -> User | None:
        payload = self.verify_token(token)
        if not payload:
            return None

        user_id = payload.get("sub")
        if not user_id or not str(user_id).isdigit():
            return None

        return self.storage.get_user(int(user_id))
