"""TrainerRoad integration.

Building blocks, leaves first: cookie bundles, HTML scraping, the login
flow, the authenticated gateway and payload normalization. The client
facade lives in ``integrations.trainerroad``.
"""

from .cookies import SessionBundle
from .gateway import AuthenticatedGateway, GatewayResult, Outcome
from .login import LoginFlowDriver, LoginOutcome, LoginResult, classify_login_response

__all__ = [
    "AuthenticatedGateway",
    "GatewayResult",
    "LoginFlowDriver",
    "LoginOutcome",
    "LoginResult",
    "Outcome",
    "SessionBundle",
    "classify_login_response",
]
