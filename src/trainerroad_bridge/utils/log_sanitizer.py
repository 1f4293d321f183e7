"""Redaction of TrainerRoad credentials and PII in log output.

The bridge handles three kinds of secret material: the athlete's TrainerRoad
password (only while logging in), the session cookies that result, and the
Supabase access tokens callers present. Any of them can end up in a log line
through an f-string or an upstream error body, so a filter on the root
logger's handlers rewrites records before they are emitted. Logger-level
filters do not see records propagated from child loggers, which is why the
filter goes on handlers and must be installed after they are configured.

Usage:
    logging.basicConfig(level=settings.log_level)
    install_log_sanitizer()
"""

import logging
import re
from typing import Any

# Names whose cookie values grant access to the TrainerRoad account
_SESSION_COOKIES = r"SharedTrainerRoadAuth|TrainerRoadAuth|\.ASPXAUTH|ASP\.NET_SessionId"

# ``name=value`` / ``"name": "value"`` fields whose value is always secret
_SECRET_FIELDS = (
    "password",
    "passwd",
    "secret",
    "service_key",
    "api_key",
    "access_token",
    "refresh_token",
    "authorization",
)


def _field(name: str) -> re.Pattern:
    return re.compile(rf"({name}[\"']?\s*[:=]\s*[\"']?)[^\"'&\s]+", re.IGNORECASE)


_RULES: list[tuple[re.Pattern, str]] = [
    # Header values go first; everything after the colon is cookie material
    (re.compile(r"((?:Set-)?Cookie[\"']?\s*[:=]\s*[\"']?)[^\"'\r\n]+", re.IGNORECASE), r"\1[REDACTED_COOKIES]"),
    (re.compile(rf"((?:{_SESSION_COOKIES})=)[^;\s\"']+"), r"\1[REDACTED]"),
    # Anti-forgery token as a form field and as a hidden input
    (re.compile(r"(__RequestVerificationToken[^=:\"']*[\"']?\s*[:=]\s*[\"']?)[^\"'&;\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(name=\"__RequestVerificationToken\"[^>]*value=\")[^\"]*"), r"\1[REDACTED]"),
    (re.compile(r"\beyJ[\w-]+\.eyJ[\w-]+\.[\w-]+"), "[REDACTED_JWT]"),
    (re.compile(r"Bearer\s+[\w.-]+", re.IGNORECASE), "Bearer [REDACTED_TOKEN]"),
    # Stored bundles are Fernet tokens; keys are 43 base64 chars plus padding
    (re.compile(r"\bgAAAAA[\w=-]{20,}"), "[REDACTED_CIPHERTEXT]"),
    (re.compile(r"(?<![\w+/=-])[\w+/-]{43}=(?![\w+/=-])"), "[REDACTED_FERNET_KEY]"),
    *[(_field(name), r"\1[REDACTED]") for name in _SECRET_FIELDS],
    (re.compile(r"\b[\w.%+-]+@[\w.-]+\.[a-zA-Z]{2,}\b"), "[REDACTED_EMAIL]"),
    (re.compile(r"\b[a-fA-F0-9]{32,}\b"), "[REDACTED_HEX_TOKEN]"),
]


def sanitize_string(text: str) -> str:
    """Apply every redaction rule to ``text``.

    Also used on upstream error bodies before they are attached to responses.
    """
    for pattern, replacement in _RULES:
        text = pattern.sub(replacement, text)
    return text


def _sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, (tuple, list)):
        return type(value)(_sanitize_value(item) for item in value)
    if isinstance(value, dict):
        return {key: _sanitize_value(item) for key, item in value.items()}
    # Numbers and other objects keep their type unless their text leaks a secret
    rendered = str(value)
    cleaned = sanitize_string(rendered)
    return value if cleaned == rendered else cleaned


class LogSanitizationFilter(logging.Filter):
    """Rewrites ``msg`` and ``args`` of every record; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = sanitize_string(str(record.msg))
        if record.args:
            record.args = _sanitize_value(record.args)
        return True


def _attach(filterer: logging.Filterer) -> None:
    if not any(isinstance(f, LogSanitizationFilter) for f in filterer.filters):
        filterer.addFilter(LogSanitizationFilter())


def install_log_sanitizer(logger_name: str | None = None) -> None:
    """Attach the filter to the handlers of ``logger_name`` (default: root).

    Safe to call more than once; handlers that already carry the filter are
    skipped. Handlers added later need another call.
    """
    target = logging.getLogger(logger_name)
    _attach(target)
    for handler in target.handlers:
        _attach(handler)
