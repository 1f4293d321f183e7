"""
Authenticated request gateway for TrainerRoad's internal JSON endpoints.

Attaches a stored cookie bundle plus browser-like headers to each call and
turns the HTTP outcome into a typed ``GatewayResult``. Nothing here retries
or raises for upstream status codes; the client facade decides what each
outcome means for the user.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ..config import Settings
from .cookies import SessionBundle
from .http import browser_headers


logger = logging.getLogger(__name__)

MAX_REDIRECTS = 5


class Outcome(str, Enum):
    """Classification of one gateway call."""
    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"


@dataclass
class GatewayResult:
    """Result of an authenticated TrainerRoad call."""
    outcome: Outcome
    url: str
    status_code: Optional[int] = None
    data: Any = None
    body_prefix: Optional[str] = None
    retry_after: Optional[int] = None
    final_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


def _get_retry_after(response: httpx.Response) -> Optional[int]:
    """Get retry-after seconds from a 429 response."""
    retry_after = response.headers.get("Retry-After")
    if retry_after:
        try:
            return int(retry_after)
        except ValueError:
            return None
    return None


class AuthenticatedGateway:
    """
    Replays a cookie bundle against TrainerRoad endpoints.

    Usage:
        gateway = AuthenticatedGateway(http, settings)
        result = await gateway.call(settings.trainerroad_recent_activities_path, bundle)
        if result.outcome is Outcome.UNAUTHORIZED:
            ...
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http = http_client
        self._settings = settings

    def _headers(self, bundle: SessionBundle, has_json_body: bool) -> Dict[str, str]:
        headers = browser_headers(
            self._settings,
            referer=self._settings.upstream_url("/app/calendar"),
        )
        headers["Accept"] = "application/json, text/plain, */*"
        headers["X-Requested-With"] = "XMLHttpRequest"
        headers["Cookie"] = bundle.serialize()
        if has_json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def call(
        self,
        path: str,
        bundle: SessionBundle,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_body: Any = None,
        follow_redirects: bool = False,
    ) -> GatewayResult:
        """Make one authenticated call and classify its outcome."""
        url = self._settings.upstream_url(path)
        timeout = self._settings.trainerroad_timeout_seconds
        try:
            response = await self._http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(bundle, json_body is not None),
                timeout=timeout,
                follow_redirects=False,
            )
            # httpx strips the Cookie header on redirects, so hops are replayed by hand
            hops = 0
            while (
                follow_redirects
                and response.is_redirect
                and not self._is_login_redirect(response)
                and hops < MAX_REDIRECTS
            ):
                response = await self._http.get(
                    response.url.join(response.headers["location"]),
                    headers=self._headers(bundle, False),
                    timeout=timeout,
                    follow_redirects=False,
                )
                hops += 1
        except httpx.TimeoutException as e:
            logger.warning(f"TrainerRoad {method} {path} timed out: {e.__class__.__name__}")
            return GatewayResult(outcome=Outcome.TIMEOUT, url=url, error="timeout")
        except httpx.TransportError as e:
            logger.warning(f"TrainerRoad {method} {path} transport failure: {e.__class__.__name__}")
            return GatewayResult(outcome=Outcome.TIMEOUT, url=url, error=e.__class__.__name__)

        return self._classify(response, url)

    def _is_login_redirect(self, response: httpx.Response) -> bool:
        location = response.headers.get("location") or ""
        return response.is_redirect and self._settings.trainerroad_login_path.lower() in location.lower()

    def _classify(self, response: httpx.Response, url: str) -> GatewayResult:
        status_code = response.status_code
        final_url = str(response.url)

        if 200 <= status_code < 300:
            if status_code == 204 or not response.content:
                data: Any = None
            else:
                try:
                    data = response.json()
                except ValueError:
                    data = response.text
            return GatewayResult(
                outcome=Outcome.OK,
                url=url,
                status_code=status_code,
                data=data,
                final_url=final_url,
            )

        # An expired session on an API path is bounced to the login page.
        if status_code in (401, 403) or self._is_login_redirect(response):
            logger.info(f"TrainerRoad rejected session cookies ({status_code}) for {url}")
            return GatewayResult(outcome=Outcome.UNAUTHORIZED, url=url, status_code=status_code)

        if status_code == 429:
            retry_after = _get_retry_after(response)
            logger.warning(f"TrainerRoad rate limit hit, retry after {retry_after}")
            return GatewayResult(
                outcome=Outcome.RATE_LIMITED,
                url=url,
                status_code=status_code,
                retry_after=retry_after,
            )

        body_prefix = response.text[: self._settings.trainerroad_max_error_body_chars]
        return GatewayResult(
            outcome=Outcome.UPSTREAM_ERROR,
            url=url,
            status_code=status_code,
            body_prefix=body_prefix,
            final_url=final_url,
        )
