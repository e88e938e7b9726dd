# leadcapture/services/auth.py
from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from uuid import uuid4

from jose import JWTError, jwt

from leadcapture.core.config import Settings, settings
from leadcapture.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
)
from leadcapture.core.logging import get_structlog_logger

logger = get_structlog_logger(__name__)

ADMIN_ROLE = "admin"


class TokenManager:
    """Manager for JWT token operations."""

    def __init__(self, config: Settings = settings):
        self.config = config

    def create_access_token(
        self,
        data: Dict,
        expires_delta: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a new access token."""
        now = now or datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.config.access_token_expire_minutes))

        to_encode = data.copy()
        to_encode.update({
            "exp": expire,
            "iat": now,
            "jti": str(uuid4()),
            "type": "access",
        })

        return jwt.encode(
            to_encode,
            self.config.secret_key,
            algorithm=self.config.algorithm,
        )

    def decode(self, token: str) -> Dict:
        """Verify signature and expiry; raises AuthenticationError."""
        try:
            return jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                options={"verify_aud": False},
            )
        except JWTError as e:
            logger.warning("auth.invalid_token", error=str(e))
            raise AuthenticationError(message="Invalid token", code="invalid_token") from e


def authenticate_admin(
    username: Optional[str],
    password: Optional[str],
    *,
    config: Settings = settings,
) -> str:
    """Check credentials against the configured admin account and issue a token."""
    if not config.admin_username or not config.admin_password:
        logger.error("auth.admin_not_configured")
        raise ConfigurationError(message="Admin access not configured")

    username_ok = secrets.compare_digest((username or "").encode(), config.admin_username.encode())
    password_ok = secrets.compare_digest((password or "").encode(), config.admin_password.encode())
    if not (username_ok and password_ok):
        logger.warning("auth.login_failed")
        raise AuthenticationError(message="Invalid username or password", code="invalid_credentials")

    logger.info("auth.login_succeeded")
    return TokenManager(config).create_access_token({"sub": username, "username": username, "role": ADMIN_ROLE})


def verify_admin_token(token: Optional[str], *, config: Settings = settings) -> Dict:
    if not token:
        raise AuthenticationError(message="No token provided", code="missing_token")

    payload = TokenManager(config).decode(token)
    if payload.get("role") != ADMIN_ROLE:
        raise AuthorizationError(
            message="Insufficient permissions",
            details={"role": payload.get("role")},
        )
    return payload


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None

    parts = authorization.split()
    if len(parts) != 2:
        return None

    scheme, token = parts
    if scheme.lower() not in ["bearer", "token"]:
        return None

    return token
