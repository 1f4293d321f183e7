"""Shared HTTP plumbing for TrainerRoad calls."""

from typing import Dict, Optional

import httpx

from ..config import Settings


def browser_headers(settings: Settings, referer: Optional[str] = None) -> Dict[str, str]:
    """Headers that make requests look like they come from a desktop browser.

    TrainerRoad rejects some requests that lack them.
    """
    return {
        "User-Agent": settings.trainerroad_user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Referer": referer or settings.login_url,
    }


def build_http_client(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create the AsyncClient used for one request's worth of upstream calls."""
    return httpx.AsyncClient(
        base_url=settings.trainerroad_base_url,
        timeout=settings.trainerroad_timeout_seconds,
        follow_redirects=False,
        transport=transport,
    )
