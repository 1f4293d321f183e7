"""FastAPI application for the TrainerRoad bridge."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.deps import get_data_store
from .api.exception_handlers import register_exception_handlers
from .api.middleware.rate_limit import limiter
from .api.routes import trainerroad
from .config import Settings, get_settings
from .db.adapters import DataStore
from .services.encryption import CookieEncryption, CookieEncryptionError
from .utils.log_sanitizer import install_log_sanitizer

logger = logging.getLogger(__name__)


def validate_security_keys(settings: Settings) -> None:
    """Validate security-relevant settings at startup.

    Raises:
        SystemExit: If the cookie encryption key is set but unusable.
    """
    try:
        encryption = CookieEncryption.optional(settings.cookie_encryption_key)
    except CookieEncryptionError as e:
        logger.critical(f"{e}. Generate a key with CookieEncryption.generate_key()")
        raise SystemExit(1)

    if encryption is not None:
        logger.info(f"COOKIE_ENCRYPTION_KEY: {encryption.key_count} key(s) configured and validated")
    else:
        logger.warning("COOKIE_ENCRYPTION_KEY not configured. TrainerRoad cookies will be stored unencrypted.")

    if not settings.supabase_jwt_secret:
        logger.warning("SUPABASE_JWT_SECRET not configured. All authenticated requests will be rejected.")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    # Handlers exist only now; filters on the root logger alone miss module loggers
    install_log_sanitizer()
    logger.info(f"Starting TrainerRoad bridge v{__version__}")
    logger.info(f"Database backend: {settings.database_backend}")

    validate_security_keys(settings)

    store = get_data_store()
    try:
        store.initialize()
    except ConnectionError as e:
        logger.warning(f"Data store not reachable at startup: {e}")

    yield

    logger.info("Shutting down TrainerRoad bridge")
    store.close()


settings = get_settings()

app = FastAPI(
    title="TrainerRoad Bridge API",
    description="Connects coaching-app users to their TrainerRoad accounts",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
    debug=settings.debug,
)

# Rate limiting
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(trainerroad.router, prefix="/api/v1/trainerroad", tags=["trainerroad"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "TrainerRoad Bridge API",
        "version": __version__,
        "status": "healthy",
    }


@app.get("/health")
async def health(store: DataStore = Depends(get_data_store)):
    """Health check endpoint."""
    database = store.health_check()
    return {
        "status": "healthy" if database.get("healthy") else "degraded",
        "database": database,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
