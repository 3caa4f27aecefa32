from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database (postgresql://... or sqlite:///...)
    database_url: str
    auto_create_tables: bool = False

    # JWT
    secret_key: str
    access_token_expire_minutes: int = 7 * 24 * 60
    algorithm: str = "HS256"
    bcrypt_rounds: int = 12

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Service rules: duration is a multiple of the step, within [min, max]
    service_duration_step_minutes: int = 30
    service_min_duration_minutes: int = 30
    service_max_duration_minutes: int = 120

    # Max seconds a write waits for its conflict domain before giving up
    lock_timeout_seconds: float = 5.0

    # Env
    env: str = "development"
    log_level: str = "INFO"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
