from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "iocwatch-backend"
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # Database
    POSTGRES_HOST: str = "db"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "iocwatch"
    POSTGRES_USER: str = "ioc_user"
    POSTGRES_PASSWORD: str = "ioc_password"

    # Full SQLAlchemy URL (e.g. sqlite:///./iocwatch.db); wins over POSTGRES_*
    DATABASE_URL_OVERRIDE: str | None = None

    # Reputation sources
    VIRUSTOTAL_API_KEY: str | None = None
    ABUSEIPDB_API_KEY: str | None = None
    VIRUSTOTAL_BASE_URL: str = "https://www.virustotal.com/api/v3"
    ABUSEIPDB_BASE_URL: str = "https://api.abuseipdb.com/api/v2"
    REPUTATION_HTTP_TIMEOUT: float = 15.0

    # Watchlist sweep
    SCAN_PACING_SECONDS: float = 1.0
    SCAN_COARSE_WINDOW_HOURS: int = 1
    DEFAULT_SCAN_FREQUENCY_HOURS: int = 24
    SIGNIFICANT_CHANGE_THRESHOLD: int = 10

    # Alerting / Webhooks
    SLACK_ALERT_WEBHOOK_URL: str | None = None
    GENERIC_ALERT_WEBHOOK_URL: str | None = None

    # Construct SQLAlchemy URL
    @property
    def DATABASE_URL(self) -> str:
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:"
            f"{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:"
            f"{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
