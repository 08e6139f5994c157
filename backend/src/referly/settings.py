"""Application settings and configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "your_jwt_secret_key_here_at_least_32_characters"}


class InsecureConfigurationError(RuntimeError):
    """Raised when production settings would run with unsafe secrets."""


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "referly"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console or json
    allowed_origins: str = "*"
    port: int = 5000

    # Database
    database_url: str = "sqlite:///./referly.db"

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_expire_days: int = 7
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    admin_token_expire_hours: int = 24

    # Admin credential pair (admin login is refused while unset)
    admin_email: str | None = None
    admin_password: str | None = None
    admin_name: str = "Administrator"

    # Mail transport (SendGrid)
    sendgrid_api_key: str | None = None
    mail_from_email: str = "no-reply@example.com"
    mail_from_name: str = "Referly"
    mail_timeout_seconds: float = Field(default=15.0, gt=0)
    frontend_url: str = "https://hureshop.netlify.app"

    # Referral
    referral_code_length: int = Field(default=8, ge=6, le=32)
    default_phone_region: str = "IN"

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def origins_list(self) -> list[str]:
        """Convert allowed_origins string to list."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    @property
    def admin_configured(self) -> bool:
        return bool(self.admin_email and self.admin_password)


def validate_settings(settings: Settings) -> None:
    """Refuse to start a production app with an insecure JWT secret.

    Raises:
        InsecureConfigurationError: If the secret is a known default or shorter than 32 chars
    """
    if not settings.is_production:
        return
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        raise InsecureConfigurationError(
            "JWT_SECRET_KEY is insecure or too short (min 32 chars). "
            "Set a strong random value:  openssl rand -hex 32"
        )
