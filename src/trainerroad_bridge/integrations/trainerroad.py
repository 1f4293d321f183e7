"""
TrainerRoad client facade.

Single entry point the rest of the app uses to talk to TrainerRoad on
behalf of one local user:

- Connecting an account via the web login flow
- Checking and dropping the stored session
- Listing completed activities (recent or by date)
- Browsing the workout catalog and looking up workout details

Every failure surfaces as ``IntegrationError`` with an HTTP-like status.
Raw upstream bodies never reach the caller.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx

from ..config import Settings
from ..db.repositories.session_repository import SessionRepository
from ..exceptions import (
    DatabaseError,
    ErrorCode,
    IntegrationError,
    InvalidUpstreamShape,
    LoginRejected,
    ScrapeError,
    UpstreamUnavailable,
)
from ..models.trainerroad import (
    ExternalActivity,
    ExternalWorkoutTemplate,
    WorkoutCatalogPage,
    build_catalog_predicate,
)
from ..utils.log_sanitizer import sanitize_string
from .cookies import SessionBundle
from .gateway import AuthenticatedGateway, GatewayResult, Outcome
from .http import build_http_client
from .login import LoginFlowDriver
from .normalizer import (
    MAX_ACTIVITIES,
    extract_total_count,
    normalize_activities,
    normalize_workouts,
)
from .scraper import TokenExtractor, extract_career_username


logger = logging.getLogger(__name__)


NOT_CONNECTED_MESSAGE = "Not connected to TrainerRoad. Please sign in first."
SESSION_EXPIRED_MESSAGE = "TrainerRoad session expired. Please sign in again."
NO_SESSION_COOKIE_MESSAGE = (
    "TrainerRoad accepted the sign-in but did not start a session. Please try again."
)


@dataclass
class AuthResult:
    """Outcome of connecting a TrainerRoad account."""
    success: bool
    message: str

    def to_dict(self) -> dict:
        return {"success": self.success, "message": self.message}


class TrainerRoadClient:
    """
    TrainerRoad access for one local user.

    Usage:
        async with TrainerRoadClient(user_id, sessions, settings) as client:
            result = await client.authenticate("athlete@example.com", "secret")
            activities = await client.get_recent_activities(limit=10)

    An ``http_client`` passed in is borrowed and left open; one created
    internally is closed by ``close()``.
    """

    provider = "trainerroad"

    def __init__(
        self,
        local_user_id: str,
        sessions: SessionRepository,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        token_extractor: Optional[TokenExtractor] = None,
    ):
        self.local_user_id = local_user_id
        self._sessions = sessions
        self._settings = settings
        self._http_client = http_client
        self._owns_client = http_client is None
        self._token_extractor = token_extractor

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = build_http_client(self._settings)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client and self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    async def __aenter__(self) -> "TrainerRoadClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # =========================================================================
    # Session lifecycle
    # =========================================================================

    async def authenticate(self, identity: str, secret: str) -> AuthResult:
        """
        Log in to TrainerRoad and store the resulting session.

        Credential problems come back as ``success=False``; only transport
        faults and storage failures raise IntegrationError.
        """
        driver = LoginFlowDriver(await self._get_client(), self._settings, self._token_extractor)
        try:
            result = await driver.login(identity, secret)
        except LoginRejected as e:
            logger.info(f"AUDIT: TrainerRoad login rejected for user {self.local_user_id}")
            return AuthResult(success=False, message=e.message)
        except ScrapeError as e:
            logger.warning(f"TrainerRoad login page scrape failed: {e.message}")
            return AuthResult(
                success=False,
                message="Could not read the TrainerRoad login page. Please try again later.",
            )
        except UpstreamUnavailable as e:
            logger.warning(f"TrainerRoad login page unavailable: {e.message}")
            return AuthResult(
                success=False,
                message="TrainerRoad is unavailable right now. Please try again later.",
            )
        except httpx.TimeoutException:
            raise IntegrationError(
                504,
                "TrainerRoad did not respond in time",
                code=ErrorCode.TRAINERROAD_TIMEOUT,
            )
        except httpx.HTTPError as e:
            raise IntegrationError(
                502,
                f"Could not reach TrainerRoad: {e.__class__.__name__}",
                code=ErrorCode.UPSTREAM_UNAVAILABLE,
            )

        if not result.bundle.is_authenticated(self._settings.trainerroad_marker_cookie):
            logger.warning(
                f"TrainerRoad login redirected without {self._settings.trainerroad_marker_cookie} cookie "
                f"for user {self.local_user_id}, not storing session"
            )
            return AuthResult(success=False, message=NO_SESSION_COOKIE_MESSAGE)

        try:
            self._sessions.upsert(self.local_user_id, result.bundle)
        except DatabaseError as e:
            logger.error(f"Failed to store TrainerRoad session for user {self.local_user_id}: {e.message}")
            raise IntegrationError(
                500,
                "Failed to save TrainerRoad session",
                code=ErrorCode.DATABASE_ERROR,
            )

        logger.info(f"AUDIT: TrainerRoad connected for user {self.local_user_id}")
        return AuthResult(success=True, message="Successfully connected to TrainerRoad")

    async def check_status(self) -> bool:
        """
        True iff an authenticated session is stored and TrainerRoad accepts it.

        Any failed check call, including a timeout or rate limit, deactivates the
        stored session before returning False.
        """
        stored = self._load_session()
        if stored is None or not stored.is_authenticated:
            return False

        gateway = await self._gateway()
        result = await gateway.call(
            self._settings.trainerroad_recent_activities_path,
            stored.bundle,
        )
        if result.ok:
            return True

        logger.info(
            f"AUDIT: TrainerRoad status check failed ({result.outcome.value}) "
            f"for user {self.local_user_id}, deactivating session"
        )
        self._deactivate_quietly()
        return False

    async def sign_out(self) -> bool:
        """Deactivate the stored session. Never raises."""
        changed = self._deactivate_quietly()
        logger.info(f"AUDIT: TrainerRoad disconnected for user {self.local_user_id}")
        return changed

    # =========================================================================
    # Activities
    # =========================================================================

    async def get_recent_activities(self, limit: int = 20) -> List[ExternalActivity]:
        """Most recent completed activities, newest first, at most 50."""
        bundle = self._require_bundle()
        data = await self._call(self._settings.trainerroad_recent_activities_path, bundle)
        return self._normalize(normalize_activities, data, min(limit, MAX_ACTIVITIES))

    async def resolve_username(self) -> str:
        """Find the user's TrainerRoad career handle via the career redirect."""
        bundle = self._require_bundle()
        gateway = await self._gateway()
        result = await gateway.call(
            self._settings.trainerroad_career_path,
            bundle,
            follow_redirects=True,
        )
        self._raise_for_outcome(result)

        page = result.data if isinstance(result.data, str) else ""
        username = extract_career_username(result.final_url or "", page)
        if not username:
            raise IntegrationError(
                502,
                "Could not determine TrainerRoad username",
                code=ErrorCode.TRAINERROAD_UPSTREAM_ERROR,
            )
        return username

    async def get_activities_by_date(
        self,
        start: date,
        end: date,
        username: Optional[str] = None,
    ) -> List[ExternalActivity]:
        """Completed activities between ``start`` and ``end``, newest first."""
        if end < start:
            raise IntegrationError(
                400,
                "End date must not be before start date",
                code=ErrorCode.VALIDATION_ERROR,
            )
        bundle = self._require_bundle()
        handle = username or await self.resolve_username()
        path = self._settings.trainerroad_calendar_activities_path.format(
            username=quote(handle, safe="")
        )
        data = await self._call(
            path,
            bundle,
            params={"start": start.isoformat(), "end": end.isoformat()},
        )
        return self._normalize(normalize_activities, data, None)

    # =========================================================================
    # Workout catalog
    # =========================================================================

    async def get_workout_catalog(
        self,
        page_size: int = 10,
        page_number: int = 0,
        search_text: Optional[str] = None,
    ) -> WorkoutCatalogPage:
        """One page of the workout catalog with the upstream total count."""
        bundle = self._require_bundle()
        data = await self._call(
            self._settings.trainerroad_workouts_path,
            bundle,
            method="POST",
            json_body=build_catalog_predicate(page_size, page_number, search_text),
        )
        items = self._normalize(normalize_workouts, data)
        return WorkoutCatalogPage(items=items, total_count=extract_total_count(data))

    async def get_workout_information(self, ids: Sequence[int]) -> List[ExternalWorkoutTemplate]:
        """Detail records for the given catalog workout ids."""
        if not ids:
            raise IntegrationError(
                400,
                "At least one workout id is required",
                code=ErrorCode.VALIDATION_ERROR,
            )
        bundle = self._require_bundle()
        data = await self._call(
            self._settings.trainerroad_workout_information_path,
            bundle,
            params={"ids": ",".join(str(workout_id) for workout_id in ids)},
        )
        return self._normalize(normalize_workouts, data)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _gateway(self) -> AuthenticatedGateway:
        return AuthenticatedGateway(await self._get_client(), self._settings)

    def _load_session(self):
        try:
            return self._sessions.get(self.local_user_id)
        except DatabaseError as e:
            logger.error(f"Failed to load TrainerRoad session for user {self.local_user_id}: {e.message}")
            raise IntegrationError(
                500,
                "Failed to load TrainerRoad session",
                code=ErrorCode.DATABASE_ERROR,
            )

    def _require_bundle(self) -> SessionBundle:
        stored = self._load_session()
        if stored is None or not stored.is_authenticated:
            raise IntegrationError(
                401,
                NOT_CONNECTED_MESSAGE,
                code=ErrorCode.TRAINERROAD_NOT_CONNECTED,
            )
        return stored.bundle

    def _deactivate_quietly(self) -> bool:
        try:
            return self._sessions.deactivate(self.local_user_id)
        except DatabaseError as e:
            logger.error(f"Failed to deactivate TrainerRoad session for user {self.local_user_id}: {e.message}")
            return False

    async def _call(
        self,
        path: str,
        bundle: SessionBundle,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
    ) -> Any:
        gateway = await self._gateway()
        result = await gateway.call(
            path,
            bundle,
            method=method,
            params=params,
            json_body=json_body,
        )
        self._raise_for_outcome(result)
        return result.data

    def _raise_for_outcome(self, result: GatewayResult) -> None:
        """Translate a non-OK gateway result into IntegrationError."""
        if result.ok:
            login_path = self._settings.trainerroad_login_path
            if result.final_url and login_path in result.final_url:
                result = GatewayResult(outcome=Outcome.UNAUTHORIZED, url=result.url, status_code=result.status_code)
            else:
                return

        if result.outcome is Outcome.UNAUTHORIZED:
            logger.info(f"AUDIT: TrainerRoad session expired for user {self.local_user_id}")
            self._deactivate_quietly()
            raise IntegrationError(
                401,
                SESSION_EXPIRED_MESSAGE,
                code=ErrorCode.TRAINERROAD_SESSION_EXPIRED,
            )

        if result.outcome is Outcome.RATE_LIMITED:
            raise IntegrationError(
                429,
                "TrainerRoad rate limit reached. Please try again later.",
                code=ErrorCode.TRAINERROAD_RATE_LIMITED,
                retry_after=result.retry_after,
            )

        if result.outcome is Outcome.TIMEOUT:
            raise IntegrationError(
                504,
                "TrainerRoad did not respond in time",
                code=ErrorCode.TRAINERROAD_TIMEOUT,
            )

        logger.warning(
            f"TrainerRoad error {result.status_code} from {result.url}: "
            f"{sanitize_string(result.body_prefix or '')}"
        )
        raise IntegrationError(
            502,
            "TrainerRoad returned an error",
            code=ErrorCode.TRAINERROAD_UPSTREAM_ERROR,
            details={"upstream_status": result.status_code},
        )

    def _normalize(self, normalizer, data: Any, *args):
        try:
            return normalizer(data, *args)
        except InvalidUpstreamShape as e:
            logger.warning(f"Unexpected TrainerRoad payload shape: {e.details}")
            raise IntegrationError(
                502,
                "TrainerRoad returned data in an unexpected format",
                code=ErrorCode.INVALID_UPSTREAM_SHAPE,
            )
