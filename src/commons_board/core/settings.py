"""Runtime configuration for the API process, migrations and maintenance jobs."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment (or a .env file) by their upper-case alias."""

    # Application metadata
    app_name: str = Field(default="Commons Board", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    admin_token_expire_minutes: int = Field(
        default=60 * 12,
        alias="ADMIN_TOKEN_EXPIRE_MINUTES",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./commons_board.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    database_timeout_seconds: float = Field(default=5.0, alias="DATABASE_TIMEOUT_SECONDS")

    # Engagement engine
    interaction_max_retries: int = Field(default=3, ge=1, alias="INTERACTION_MAX_RETRIES")
    points_retention_days: int = Field(default=365, alias="POINTS_RETENTION_DAYS")
    notification_retention_days: int = Field(default=30, alias="NOTIFICATION_RETENTION_DAYS")
    leaderboard_notify_top: int = Field(default=3, alias="LEADERBOARD_NOTIFY_TOP")
    temporary_ban_days: int = Field(default=7, ge=1, alias="TEMPORARY_BAN_DAYS")

    # CORS configuration for the mobile/web clients
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return the URL Alembic should use, pinning bare postgres URLs to psycopg 3."""
        url = self.effective_database_url
        for prefix in ("postgresql+psycopg2://", "postgresql://", "postgres://"):
            if url.startswith(prefix):
                return "postgresql+psycopg://" + url[len(prefix):]
        return url

    @property
    def effective_database_url(self) -> str:
        """Return TEST_DATABASE_URL when USE_TEST_DATABASE is set, else DATABASE_URL."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
