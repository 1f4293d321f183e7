"""TrainerRoad API routes.

Lets a user connect their TrainerRoad account and lets the user (or their
coach) read completed rides and browse the workout catalog.

Security Features:
- Rate limiting on credential submission
- Audit logging of connect/disconnect (never the credentials themselves)
- Coach access to a client's data requires a shared program
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Union

import httpx
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..deps import get_data_store, get_http_client, get_session_repository
from ..middleware.auth import CurrentUser, get_current_user, get_target_user_id
from ..middleware.rate_limit import RATE_LIMIT_TRAINERROAD_AUTH, limiter
from ...config import Settings, get_settings
from ...db.adapters import DataStore
from ...db.repositories.session_repository import SessionRepository
from ...exceptions import ValidationError
from ...integrations.trainerroad import TrainerRoadClient
from ...services.activity_import import ActivityImportService


router = APIRouter()
logger = logging.getLogger(__name__)


# ============ Request/Response Models ============


class AuthRequest(BaseModel):
    """TrainerRoad credentials."""
    identity: str = Field(..., min_length=1, description="TrainerRoad username or email")
    secret: str = Field(..., min_length=1, description="TrainerRoad password")


class AuthResponse(BaseModel):
    success: bool
    message: str


class StatusResponse(BaseModel):
    authenticated: bool
    user_id: str


class SignOutResponse(BaseModel):
    success: bool


class WorkoutCatalogResponse(BaseModel):
    items: List[Dict[str, Any]]
    totalCount: int


class ImportRequest(BaseModel):
    """Import recent rides into a program."""
    program_id: Union[int, str]
    limit: int = Field(default=20, ge=1, le=50)


class ImportResponse(BaseModel):
    imported: int
    skipped: int
    workout_ids: List[Any] = []


# ============ Dependencies ============


def _build_client(
    user_id: str,
    sessions: SessionRepository,
    settings: Settings,
    http_client: httpx.AsyncClient,
) -> TrainerRoadClient:
    return TrainerRoadClient(user_id, sessions, settings, http_client=http_client)


async def get_own_client(
    current_user: CurrentUser = Depends(get_current_user),
    sessions: SessionRepository = Depends(get_session_repository),
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> TrainerRoadClient:
    """Client bound to the caller's own TrainerRoad session."""
    return _build_client(current_user.user_id, sessions, settings, http_client)


async def get_target_client(
    target_user_id: str = Depends(get_target_user_id),
    sessions: SessionRepository = Depends(get_session_repository),
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client),
) -> TrainerRoadClient:
    """Client bound to the caller's or a coached client's session."""
    return _build_client(target_user_id, sessions, settings, http_client)


def _parse_ids(raw: str) -> List[int]:
    try:
        ids = [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValidationError("ids must be a comma-separated list of integers", field="ids")
    if not ids:
        raise ValidationError("At least one workout id is required", field="ids")
    return ids


# ============ API Endpoints ============


@router.post("/auth", response_model=AuthResponse)
@limiter.limit(RATE_LIMIT_TRAINERROAD_AUTH)
async def authenticate(
    request: Request,
    body: AuthRequest,
    client: TrainerRoadClient = Depends(get_own_client),
):
    """Connect the caller's TrainerRoad account."""
    logger.info(f"AUDIT: TrainerRoad connect requested by user {client.local_user_id}")
    result = await client.authenticate(body.identity, body.secret)
    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={
                "success": False,
                "message": result.message,
                "error": result.message,
                "status": status.HTTP_401_UNAUTHORIZED,
            },
        )
    return AuthResponse(**result.to_dict())


@router.get("/status", response_model=StatusResponse)
async def get_status(client: TrainerRoadClient = Depends(get_target_client)):
    """Whether the target user has a working TrainerRoad session."""
    authenticated = await client.check_status()
    return StatusResponse(authenticated=authenticated, user_id=client.local_user_id)


@router.post("/signout", response_model=SignOutResponse)
async def sign_out(client: TrainerRoadClient = Depends(get_own_client)):
    """Disconnect the caller's TrainerRoad account."""
    await client.sign_out()
    return SignOutResponse(success=True)


@router.get("/activities/recent", response_model=List[Dict[str, Any]])
async def get_recent_activities(
    limit: int = Query(default=20, ge=1, le=50),
    client: TrainerRoadClient = Depends(get_target_client),
):
    """Most recent completed rides, newest first."""
    activities = await client.get_recent_activities(limit=limit)
    return [activity.to_dict() for activity in activities]


@router.get("/activities/by-date", response_model=List[Dict[str, Any]])
async def get_activities_by_date(
    start: date = Query(..., description="First day (YYYY-MM-DD)"),
    end: date = Query(..., description="Last day (YYYY-MM-DD)"),
    username: Optional[str] = Query(default=None, description="TrainerRoad career handle"),
    client: TrainerRoadClient = Depends(get_target_client),
):
    """Completed rides in a date range, newest first."""
    activities = await client.get_activities_by_date(start, end, username=username)
    return [activity.to_dict() for activity in activities]


@router.get("/workout-catalog", response_model=WorkoutCatalogResponse)
async def get_workout_catalog(
    page_size: int = Query(default=10, ge=1, le=100, alias="pageSize"),
    page_number: int = Query(default=0, ge=0, alias="pageNumber"),
    search: Optional[str] = Query(default=None),
    client: TrainerRoadClient = Depends(get_target_client),
):
    """One page of the TrainerRoad workout catalog."""
    page = await client.get_workout_catalog(page_size, page_number, search)
    return WorkoutCatalogResponse(**page.to_dict())


@router.get("/workout-information", response_model=List[Dict[str, Any]])
async def get_workout_information(
    ids: str = Query(..., description="Comma-separated workout ids"),
    client: TrainerRoadClient = Depends(get_target_client),
):
    """Details for specific catalog workouts."""
    workouts = await client.get_workout_information(_parse_ids(ids))
    return [workout.to_dict() for workout in workouts]


@router.post("/activities/import", response_model=ImportResponse)
async def import_activities(
    body: ImportRequest,
    client: TrainerRoadClient = Depends(get_target_client),
    store: DataStore = Depends(get_data_store),
):
    """Copy recent rides into one of the target user's programs."""
    program = store.select_one("programs", {"id": body.program_id, "user_id": client.local_user_id})
    if program is None:
        raise ValidationError("Program not found for this user", field="program_id")

    result = await ActivityImportService(client, store).import_recent(body.program_id, limit=body.limit)
    return ImportResponse(**result.to_dict())
