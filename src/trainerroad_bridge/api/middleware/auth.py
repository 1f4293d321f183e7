"""Authentication middleware for FastAPI.

Resolves the current principal from a Supabase access token and decides
whose TrainerRoad data a request may touch: the caller's own, or a client's
when the caller is that client's coach.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...db.adapters import DataStore
from ...exceptions import ForbiddenError
from ...services.auth_service import (
    AuthService,
    InvalidTokenError,
    TokenExpiredError,
    get_auth_service,
)
from ..deps import get_data_store


logger = logging.getLogger(__name__)

# Security scheme for Bearer token authentication
security = HTTPBearer(auto_error=False)

COACH_ROLE = "coach"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass
class CurrentUser:
    """Represents the currently authenticated user.

    Attributes:
        user_id: Unique identifier for the user (Supabase ``sub``).
        email: User's email address, when the token carries one.
        role: Application role claim, if present in the token.
    """

    user_id: str
    email: Optional[str] = None
    role: Optional[str] = None


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_service: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    """FastAPI dependency to get the current authenticated user.

    Raises:
        HTTPException (401): If no token is provided or token is invalid.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    try:
        payload = auth_service.verify_access_token(credentials.credentials)
    except TokenExpiredError:
        raise _unauthorized("Token has expired")
    except InvalidTokenError as e:
        raise _unauthorized(str(e))

    user = CurrentUser(
        user_id=payload["sub"],
        email=payload.get("email"),
        role=(payload.get("user_metadata") or {}).get("role"),
    )
    # Rate limiter keys on this
    request.state.user = user
    return user


def ensure_coach_access(store: DataStore, coach_id: str, client_id: str) -> None:
    """Raise ForbiddenError unless ``coach_id`` coaches ``client_id``.

    The caller must have the coach role and share at least one program
    with the client.
    """
    profile = store.select_one("users", {"id": coach_id})
    if not profile or profile.get("role") != COACH_ROLE:
        logger.warning(f"User {coach_id} without coach role requested data for {client_id}")
        raise ForbiddenError("Only coaches can access a client's TrainerRoad data")

    program = store.select_one("programs", {"coach_id": coach_id, "user_id": client_id})
    if program is None:
        logger.warning(f"Coach {coach_id} has no program with user {client_id}")
        raise ForbiddenError("No program found with this user")


async def get_target_user_id(
    user_id: Optional[str] = Query(default=None, description="Client whose data to read (coaches only)"),
    current_user: CurrentUser = Depends(get_current_user),
    store: DataStore = Depends(get_data_store),
) -> str:
    """Resolve whose TrainerRoad data the request targets.

    Without ``user_id`` (or with the caller's own id) the caller is the
    target. Any other id requires coach access to that user.

    Raises:
        ForbiddenError (403): If the caller may not read that user's data.
    """
    if not user_id or user_id == current_user.user_id:
        return current_user.user_id

    ensure_coach_access(store, current_user.user_id, user_id)
    logger.info(f"AUDIT: coach {current_user.user_id} accessing TrainerRoad data of {user_id}")
    return user_id
