"""Application settings and configuration.

This module defines all configuration options for the Consejo service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Runtime voting policy (thresholds, vote budget) lives in the database and is
    editable by administrators; the ``policy_*`` values below only seed that row
    the first time it is created.
    """

    # Application metadata
    app_name: str = Field(default="Consejo", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    admin_email: str = Field(default="admin@consejo.local", alias="ADMIN_EMAIL")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./consejo.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 30,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Defaults for the policy row created on first use
    policy_min_votes_petition: int = Field(default=100, ge=0, alias="POLICY_MIN_VOTES_PETITION")
    policy_min_votes_membership_request: int = Field(
        default=10,
        ge=0,
        alias="POLICY_MIN_VOTES_MEMBERSHIP_REQUEST",
    )
    policy_approval_percentage: int = Field(
        default=70,
        ge=0,
        le=100,
        alias="POLICY_APPROVAL_PERCENTAGE",
    )
    policy_max_vote_budget: int = Field(default=10, ge=0, alias="POLICY_MAX_VOTE_BUDGET")
    policy_regen_interval_minutes: int = Field(
        default=2,
        ge=1,
        alias="POLICY_REGEN_INTERVAL_MINUTES",
    )

    # Vote hygiene
    daily_approval_cap: int = Field(default=3, ge=0, alias="DAILY_APPROVAL_CAP")
    vote_comment_min_length: int = Field(default=4, ge=0, alias="VOTE_COMMENT_MIN_LENGTH")
    membership_request_min_length: int = Field(
        default=20,
        ge=0,
        alias="MEMBERSHIP_REQUEST_MIN_LENGTH",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
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
        populate_by_name=True,
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.

        Returns:
            Database URL compatible with synchronous database drivers
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides.

        Returns:
            The active database URL (test database if in testing mode, otherwise production)
        """
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
