"""Configuration settings for the TrainerRoad bridge."""

from pathlib import Path
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


# __file__ = src/trainerroad_bridge/config.py
PACKAGE_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(PACKAGE_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # TrainerRoad upstream
    trainerroad_base_url: str = "https://www.trainerroad.com"
    trainerroad_login_path: str = "/app/login"
    trainerroad_recent_activities_path: str = "/app/api/career/self/recent-activities"
    trainerroad_career_path: str = "/app/career"
    trainerroad_calendar_activities_path: str = "/app/api/react-calendar/{username}/activities"
    trainerroad_workouts_path: str = "/app/api/workouts"
    trainerroad_workout_information_path: str = "/app/api/workout-information"

    # Login form field names (upstream markup has drifted before)
    trainerroad_identity_field: str = "Username"
    trainerroad_secret_field: str = "Password"
    trainerroad_token_field: str = "__RequestVerificationToken"
    trainerroad_remember_field: str = "RememberMe"

    # Cookie whose presence marks a real upstream session
    trainerroad_marker_cookie: str = "SharedTrainerRoadAuth"

    trainerroad_timeout_seconds: float = 30.0
    trainerroad_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    )
    trainerroad_max_error_body_chars: int = 500

    # Persistence
    database_backend: str = "sqlite"  # "sqlite" or "supabase"
    bridge_db_path: Path | None = None
    sessions_table: str = "trainerroad_sessions"
    supabase_url: str = ""
    supabase_service_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"

    # Fernet key for cookie bundles at rest (empty = stored as plaintext)
    cookie_encryption_key: str = ""

    def model_post_init(self, __context) -> None:
        """Set default database path after initialization."""
        if self.bridge_db_path is None:
            self.bridge_db_path = PACKAGE_ROOT / "trainerroad_bridge.db"

    def upstream_url(self, path: str) -> str:
        """Absolute TrainerRoad URL for a path like ``/app/login``."""
        return f"{self.trainerroad_base_url.rstrip('/')}/{path.lstrip('/')}"

    @property
    def login_url(self) -> str:
        return self.upstream_url(self.trainerroad_login_path)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
