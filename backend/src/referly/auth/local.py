"""Local authentication primitives: password hashing, JWT tokens, admin check."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from referly.errors import InvalidCredentialsError
from referly.logging_config import get_logger

logger = get_logger(__name__)

JWT_ALGORITHM = "HS256"


class PasswordHasher:
    """One-way password hashing backed by bcrypt."""

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain password

        Returns:
            Hashed password
        """
        return self._context.hash(self._truncate_password(password))

    def verify(self, password: str, hashed: str) -> bool:
        """Verify a password against hash.

        Malformed or unknown hashes verify as False.
        """
        try:
            return self._context.verify(self._truncate_password(password), hashed)
        except (ValueError, TypeError):
            logger.warning("password_hash_unrecognized")
            return False


class TokenService:
    """Issue and verify signed JWT tokens."""

    def __init__(
        self,
        secret_key: str,
        user_ttl: timedelta = timedelta(days=7),
        admin_ttl: timedelta = timedelta(hours=24),
    ):
        self._secret_key = secret_key
        self.user_ttl = user_ttl
        self.admin_ttl = admin_ttl

    def _encode(self, claims: dict[str, Any], ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {**claims, "iat": now, "exp": now + ttl}
        return jwt.encode(payload, self._secret_key, algorithm=JWT_ALGORITHM)

    def issue_user_token(self, user_id: int) -> str:
        """Create an access token bound to a user id."""
        return self._encode({"sub": str(user_id), "type": "user"}, self.user_ttl)

    def issue_admin_token(self, email: str) -> str:
        """Create an admin session token."""
        return self._encode({"sub": email, "role": "admin", "type": "admin"}, self.admin_ttl)

    def decode(self, token: str) -> dict[str, Any] | None:
        """Verify and decode a token.

        Returns:
            Token payload or None if invalid or expired
        """
        try:
            return jwt.decode(token, self._secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            logger.debug("token_verification_failed", error=str(e))
            return None


class AdminAuthenticator:
    """Check the single configured admin credential pair."""

    def __init__(self, email: str | None, password: str | None, tokens: TokenService):
        self._email = email
        self._password = password
        self._tokens = tokens

    @property
    def configured(self) -> bool:
        return bool(self._email and self._password)

    def login(self, email: str, password: str) -> str:
        """Authenticate the admin and return a session token.

        Raises:
            InvalidCredentialsError: When admin is not configured or credentials mismatch
        """
        if not self.configured:
            logger.warning("admin_login_refused", reason="admin_not_configured")
            raise InvalidCredentialsError("Unauthorized", status_code=401)

        email_ok = secrets.compare_digest(email.encode("utf-8"), self._email.encode("utf-8"))
        password_ok = secrets.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        if not (email_ok and password_ok):
            logger.warning("admin_login_failed")
            raise InvalidCredentialsError("Unauthorized", status_code=401)

        logger.info("admin_logged_in")
        return self._tokens.issue_admin_token(self._email)
