"""
Pattern-based extraction from TrainerRoad HTML pages.

The login page is third-party markup that changes without notice, so nothing
here parses HTML properly. Each helper looks for one narrow pattern and
either returns what it found or fails loudly (token) / falls back to a
generic value (error message).
"""

import html as html_lib
import re
from typing import Callable, Optional

from ..exceptions import ScrapeError


# Callable that turns a login page body into the anti-forgery token.
TokenExtractor = Callable[[str], str]

DEFAULT_TOKEN_FIELD = "__RequestVerificationToken"
DEFAULT_LOGIN_ERROR = "Invalid TrainerRoad credentials"

_VALIDATION_SUMMARY = re.compile(
    r"<div[^>]*validation-summary-errors[^>]*>[\s\S]*?<ul[^>]*>([\s\S]*?)</ul>",
    re.IGNORECASE,
)
_LIST_ITEM = re.compile(r"<li[^>]*>([\s\S]*?)</li>", re.IGNORECASE)
_FIELD_ERROR = re.compile(r"field-validation-error[^>]*>([^<]+)<", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")

_CAREER_URL = re.compile(r"/app/career/([^/?#]+)")
_CAREER_HTML = re.compile(r"/(?:app|career)/career/([^\"'\s/?#]+)")


def _token_patterns(field_name: str) -> tuple[re.Pattern, ...]:
    name = re.escape(field_name)
    return (
        re.compile(rf'name="{name}"[^>]*value="([^"]*)"'),
        re.compile(rf'value="([^"]*)"[^>]*name="{name}"'),
    )


def make_token_extractor(field_name: str = DEFAULT_TOKEN_FIELD) -> TokenExtractor:
    """Build a token extractor for the hidden field called ``field_name``."""
    patterns = _token_patterns(field_name)

    def extract(page: str) -> str:
        for pattern in patterns:
            match = pattern.search(page or "")
            if match and match.group(1):
                return html_lib.unescape(match.group(1))
        raise ScrapeError(
            f"Hidden field {field_name} not found on login page",
            details={"field": field_name},
        )

    return extract


extract_token: TokenExtractor = make_token_extractor()


def _strip_tags(fragment: str) -> str:
    return html_lib.unescape(_TAG.sub("", fragment)).strip()


def extract_login_error(page: str) -> str:
    """
    Best-effort human-readable reason for a rejected login.

    Never raises. Checks, in order: the first item of the ASP.NET
    validation summary, the first field validation error, then keyword
    heuristics, then a generic message.
    """
    page = page or ""

    summary = _VALIDATION_SUMMARY.search(page)
    if summary:
        item = _LIST_ITEM.search(summary.group(1))
        if item:
            message = _strip_tags(item.group(1))
            if message:
                return message

    field_error = _FIELD_ERROR.search(page)
    if field_error:
        message = _strip_tags(field_error.group(1))
        if message:
            return message

    if "invalid" in page or "incorrect" in page:
        return "Invalid email or password"
    if "locked" in page or "blocked" in page:
        return "Account is locked. Please try again later."

    return DEFAULT_LOGIN_ERROR


def extract_career_username(final_url: str, page: str = "") -> Optional[str]:
    """Find the upstream career handle from the career redirect URL or page."""
    match = _CAREER_URL.search(final_url or "")
    if match:
        return match.group(1)
    match = _CAREER_HTML.search(page or "")
    if match:
        return match.group(1)
    return None
