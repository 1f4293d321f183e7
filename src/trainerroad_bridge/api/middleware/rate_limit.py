"""slowapi limiter for the TrainerRoad routes.

Credential submission replays a browser login against TrainerRoad, so it is
throttled per local account. Requests that never resolved a caller (missing
or bad token) are counted against the client address instead.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address


# Connect attempts per caller; TrainerRoad locks accounts after repeated failures
RATE_LIMIT_TRAINERROAD_AUTH = "5/minute"


def get_rate_limit_key(request: Request) -> str:
    """``user:<id>`` once get_current_user has run, else ``ip:<address>``."""
    user_id = getattr(getattr(request.state, "user", None), "user_id", None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(key_func=get_rate_limit_key)
