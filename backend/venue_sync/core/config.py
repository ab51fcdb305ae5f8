from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Database
    database_url: str = "sqlite:///./venue_sync.db"

    # JWT (cookie-based auth)
    JWT_SECRET: str = "change-me"
    JWT_ISS: str = "vedi-api-dev"
    JWT_AUD: str = "vedi-dashboard"
    ACCESS_TOKEN_TTL_SECONDS: int = 60 * 60 * 24 * 7  # 7 days

    # Venue/restaurant sync
    INVITATION_TTL_DAYS: int = 7
    REQUEST_TTL_DAYS: int = 30  # informational only, nothing expires requests
    INVITE_CODE_ATTEMPTS: int = 5
    INVITATION_LINK_BASE: str = "http://localhost:8000/"
    DISCOVERY_PAGE_SIZE: int = 100

    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    def cors_origins(self) -> list[str]:
        raw = (self.CORS_ORIGINS or "").strip()
        if not raw:
            return []
        return [x.strip() for x in raw.split(",") if x.strip()]


settings = Settings()
