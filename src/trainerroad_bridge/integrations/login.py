"""
TrainerRoad web login flow.

TrainerRoad has no OAuth, so connecting an account means replaying what a
browser does on the login page:

    START -> FETCH_LOGIN_PAGE -> TOKEN_EXTRACTED -> CREDENTIALS_SUBMITTED
          -> SUCCESS | REJECTED

The cookie bundle is threaded through each step as an immutable value.
Persisting the resulting bundle is the caller's job.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from ..config import Settings
from ..exceptions import LoginRejected, UpstreamUnavailable
from .cookies import SessionBundle, parse
from .http import browser_headers
from .scraper import TokenExtractor, extract_login_error, make_token_extractor


logger = logging.getLogger(__name__)


class LoginState(str, Enum):
    """Steps of the login state machine."""
    START = "start"
    FETCH_LOGIN_PAGE = "fetch_login_page"
    TOKEN_EXTRACTED = "token_extracted"
    CREDENTIALS_SUBMITTED = "credentials_submitted"
    SUCCESS = "success"
    REJECTED = "rejected"


class LoginOutcome(str, Enum):
    SUCCESS = "success"
    REJECTED = "rejected"


def classify_login_response(
    status_code: int,
    location: Optional[str],
    login_path: str = "/app/login",
) -> LoginOutcome:
    """
    Decide whether a credentials POST succeeded from the raw response.

    TrainerRoad re-renders the login page (200) on failure and redirects
    (302) on success. A redirect back to the login page is a failure.
    """
    if status_code != 302:
        return LoginOutcome.REJECTED
    if not location:
        return LoginOutcome.REJECTED
    if login_path.lower() in location.lower():
        return LoginOutcome.REJECTED
    return LoginOutcome.SUCCESS


@dataclass
class LoginResult:
    """Outcome of a successful login."""
    bundle: SessionBundle
    redirect_location: Optional[str] = None


class LoginFlowDriver:
    """
    Drives the two-request TrainerRoad login.

    Usage:
        async with httpx.AsyncClient() as http:
            driver = LoginFlowDriver(http, settings)
            result = await driver.login("athlete@example.com", "secret")
            store.upsert(user_id, result.bundle)

    Raises UpstreamUnavailable, ScrapeError or LoginRejected on the
    corresponding failure; httpx transport errors propagate untouched.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: Settings,
        token_extractor: Optional[TokenExtractor] = None,
    ):
        self._http = http_client
        self._settings = settings
        self._extract_token = token_extractor or make_token_extractor(
            settings.trainerroad_token_field
        )
        self.state = LoginState.START

    @property
    def login_url(self) -> str:
        return self._settings.login_url

    async def fetch_login_page(self) -> tuple[str, SessionBundle]:
        """GET the login page unauthenticated; returns (html, initial bundle)."""
        self.state = LoginState.FETCH_LOGIN_PAGE
        response = await self._http.get(
            self.login_url,
            headers=browser_headers(self._settings),
            timeout=self._settings.trainerroad_timeout_seconds,
            follow_redirects=False,
        )
        if not response.is_success:
            logger.warning(f"TrainerRoad login page returned {response.status_code}")
            raise UpstreamUnavailable(
                f"TrainerRoad login page returned {response.status_code}",
                upstream_status=response.status_code,
            )
        bundle = SessionBundle.from_set_cookie(response.headers.get_list("set-cookie"))
        logger.debug(f"Login page fetched, {len(bundle)} pre-login cookies")
        return response.text, bundle

    async def submit_credentials(
        self,
        identity: str,
        secret: str,
        token: str,
        bundle: SessionBundle,
    ) -> httpx.Response:
        """POST the login form with redirects disabled."""
        self.state = LoginState.CREDENTIALS_SUBMITTED
        settings = self._settings
        form = {
            settings.trainerroad_identity_field: identity,
            settings.trainerroad_secret_field: secret,
            settings.trainerroad_token_field: token,
            settings.trainerroad_remember_field: "false",
        }
        headers = browser_headers(settings, referer=self.login_url)
        headers["Origin"] = settings.trainerroad_base_url.rstrip("/")
        if len(bundle):
            headers["Cookie"] = bundle.serialize()

        return await self._http.post(
            self.login_url,
            data=form,
            headers=headers,
            timeout=settings.trainerroad_timeout_seconds,
            follow_redirects=False,
        )

    async def login(self, identity: str, secret: str) -> LoginResult:
        """Run the full flow and return the post-login cookie bundle."""
        self.state = LoginState.START
        page, initial_bundle = await self.fetch_login_page()

        token = self._extract_token(page)
        self.state = LoginState.TOKEN_EXTRACTED

        response = await self.submit_credentials(identity, secret, token, initial_bundle)
        location = response.headers.get("location")
        outcome = classify_login_response(
            response.status_code,
            location,
            self._settings.trainerroad_login_path,
        )

        if outcome is LoginOutcome.REJECTED:
            self.state = LoginState.REJECTED
            message = extract_login_error(response.text)
            logger.info(f"TrainerRoad login rejected (status {response.status_code})")
            raise LoginRejected(message, details={"upstream_status": response.status_code})

        self.state = LoginState.SUCCESS
        final_bundle = initial_bundle.merged_with(parse(response.headers.get_list("set-cookie")))
        logger.info(f"TrainerRoad login succeeded, {len(final_bundle)} cookies harvested")
        return LoginResult(
            bundle=final_bundle,
            redirect_location=location,
        )
