"""MIC Service — Authentication Service.

Password hashing and JWT access-token handling. Uses bcrypt directly for
hashing (off the event loop) and python-jose for JWT.

Notes:
    - Work factor comes from SECURITY_BCRYPT_ROUNDS
    - Every token expires and carries a JTI
    - Passwords are never logged

Usage:
    from services.auth_service import get_auth_service

    auth = get_auth_service()
    hashed = await auth.hash_password("user_password")
    if await auth.verify_password("user_password", hashed):
        token = auth.create_access_token(user_id="...", name="Jane", role=UserRole.USER)
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
from jose import JWTError, jwt

from config import get_settings
from logger import get_logger
from schemas.security import TokenData, UserRole

logger = get_logger(__name__)


class AuthService:
    """Password and token operations.

    Example:
        >>> auth = AuthService()
        >>> hashed = await auth.hash_password("my_secure_password")
        >>> await auth.verify_password("my_secure_password", hashed)
        True
    """

    def __init__(self) -> None:
        security = get_settings().security

        self._secret_key = security.jwt_secret.get_secret_value()
        self._algorithm = security.jwt_algorithm
        self._access_expiry_minutes = security.jwt_expiry_minutes
        self._bcrypt_rounds = security.bcrypt_rounds

    # =========================================================================
    # Password Operations
    # =========================================================================

    async def hash_password(self, plain_password: str) -> str:
        """Hash a plain-text password using bcrypt (non-blocking).

        Returns:
            The bcrypt hash string (includes salt and work factor).
        """
        def _hash() -> str:
            salt = bcrypt.gensalt(rounds=self._bcrypt_rounds)
            return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")

        return await asyncio.to_thread(_hash)

    async def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a plain-text password against a bcrypt hash (non-blocking).

        Malformed hashes verify as False rather than raising.
        """
        def _verify() -> bool:
            try:
                return bcrypt.checkpw(
                    plain_password.encode("utf-8"),
                    hashed_password.encode("utf-8"),
                )
            except ValueError:
                return False

        return await asyncio.to_thread(_verify)

    # =========================================================================
    # JWT Token Operations
    # =========================================================================

    def create_access_token(
        self,
        user_id: str,
        name: str,
        role: UserRole = UserRole.USER,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed JWT access token.

        Args:
            user_id: Unique user identifier (stored in 'sub' claim).
            name: Display name.
            role: Authorization role at issuance time.
            expires_delta: Custom lifetime. Defaults to config value.

        Returns:
            Encoded JWT string.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=self._access_expiry_minutes)

        now = datetime.now(timezone.utc)
        expire = now + expires_delta
        jti = str(uuid.uuid4())

        payload: dict[str, Any] = {
            "sub": str(user_id),
            "name": name,
            "role": UserRole(role).value,
            "exp": expire,
            "iat": now,
            "jti": jti,
        }
        token = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

        logger.info(
            "Token created",
            user_id=str(user_id),
            expires_at=expire.isoformat(),
            jti=jti,
        )
        return token

    def verify_token(self, token: str) -> TokenData:
        """Verify and decode a JWT token.

        Raises:
            InvalidTokenError: If the token is malformed, tampered with,
                expired, or carries unknown claims.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            token_data = TokenData(
                sub=payload["sub"],
                name=payload.get("name", ""),
                role=UserRole(payload.get("role", UserRole.USER.value)),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                jti=payload.get("jti", str(uuid.uuid4())),
            )
        except (JWTError, KeyError, ValueError) as exc:
            logger.warning(
                "Token verification failed",
                error_type=type(exc).__name__,
            )
            raise InvalidTokenError(f"Invalid token: {exc}") from exc

        logger.debug("Token verified", user_id=token_data.sub)
        return token_data


class AuthenticationError(Exception):
    """Base exception for authentication errors."""


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT token is invalid or expired."""


# =============================================================================
# Module-Level Singleton
# =============================================================================

_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get the shared AuthService instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
