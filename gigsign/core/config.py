
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "GigSign API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"

    # Database (Postgres via asyncpg in production or SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./gigsign_dev.db",
        alias="DATABASE_URL",
    )

    # Multi-tenancy default
    default_client_id: str = Field(default="default", alias="DEFAULT_CLIENT_ID")

    # Admin access (bearer key for the back-office endpoints)
    admin_api_key: str | None = Field(default=None, alias="ADMIN_API_KEY")
    admin_email: str | None = Field(default=None, alias="ADMIN_EMAIL")

    # Public signing links
    public_app_url: str = Field(
        default="http://localhost:3000", alias="PUBLIC_APP_URL",
    )  # base for /review/<token> and /sign/<token> links
    token_ttl_days: int = Field(default=30, alias="TOKEN_TTL_DAYS")
    contract_number_prefix: str = Field(default="SS", alias="CONTRACT_NUMBER_PREFIX")

    # Public link throttling ("memory://" per process; "redis://..." when shared)
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    rate_limit_storage_uri: str = Field(default="memory://", alias="RATE_LIMIT_STORAGE_URI")

    # Outbound email
    email_backend: str = Field(default="log", alias="EMAIL_BACKEND")  # "log" | "resend"
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    resend_from_email: str = Field(
        default="noreply@gigsign.app", alias="RESEND_FROM_EMAIL",
    )
    resend_api_url: str = Field(
        default="https://api.resend.com/emails", alias="RESEND_API_URL",
    )
    resend_timeout: int = Field(default=15, alias="RESEND_TIMEOUT")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
    }

    @property
    def email_enabled(self) -> bool:
        """Real delivery happens only when the Resend backend has a key."""
        return self.email_backend == "resend" and bool(self.resend_api_key)

settings = Settings()
