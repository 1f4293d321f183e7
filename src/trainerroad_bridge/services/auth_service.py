"""Supabase access token verification.

Supabase Auth issues HS256 JWTs signed with the project's JWT secret. This
service only verifies them; issuing tokens is Supabase's job.
"""

from typing import Any, Optional

import jwt

from ..config import Settings, get_settings


class AuthServiceError(Exception):
    """Base exception for auth service errors."""

    pass


class TokenExpiredError(AuthServiceError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(AuthServiceError):
    """Raised when a token is invalid."""

    pass


class AuthService:
    """Verifies Supabase access tokens and extracts the principal."""

    algorithm = "HS256"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._secret_key = settings.supabase_jwt_secret
        self._audience = settings.supabase_jwt_audience

    def verify_access_token(self, token: str) -> dict[str, Any]:
        """Verify and decode a Supabase access token.

        Args:
            token: The JWT from the Authorization header.

        Returns:
            Decoded token payload; ``sub`` is the local user id.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid or lacks a subject.
        """
        if not self._secret_key:
            raise InvalidTokenError("Token verification is not configured")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                audience=self._audience,
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        if not payload.get("sub"):
            raise InvalidTokenError("Token has no subject")
        return payload


def get_auth_service() -> AuthService:
    """FastAPI dependency for the auth service."""
    return AuthService()
