# salon_booking/config.py

from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    database_url: str = "sqlite:///./salon.db"
    redis_url: str = "redis://localhost:6379/0"

    business_timezone: str = "America/New_York"

    # "local" = in-process locks (single worker), "redis" = shared across workers
    lock_backend: str = "local"
    lock_timeout_seconds: float = 5.0
    lock_lease_seconds: float = 10.0

    reference_max_attempts: int = 10
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # relative sqlite path -> absolute, anchored at the project root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
