"""Application context assembled once at startup and injected into handlers."""

from dataclasses import dataclass
from datetime import timedelta

from fastapi import Request

from referly.auth.local import AdminAuthenticator, PasswordHasher, TokenService
from referly.campaign.service import CampaignService
from referly.email.service import MailTransport, NotificationDispatcher, SendGridTransport
from referly.referral.service import ReferralEngine
from referly.settings import Settings
from referly.storage.db import Database


@dataclass
class AppContext:
    """Everything a request handler needs, wired from one Settings object."""
    settings: Settings
    database: Database
    passwords: PasswordHasher
    tokens: TokenService
    admin: AdminAuthenticator
    notifications: NotificationDispatcher
    users: ReferralEngine
    campaigns: CampaignService

    def close(self) -> None:
        self.database.dispose()


def build_context(settings: Settings, transport: MailTransport | None = None) -> AppContext:
    """Build the application context.

    Args:
        settings: Application settings
        transport: Mail transport override (defaults to SendGrid from settings)

    Returns:
        Wired application context
    """
    database = Database(settings.database_url, echo=settings.env == "development" and settings.log_level == "DEBUG")
    passwords = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenService(
        settings.jwt_secret_key,
        user_ttl=timedelta(days=settings.jwt_expire_days),
        admin_ttl=timedelta(hours=settings.admin_token_expire_hours),
    )
    if transport is None:
        transport = SendGridTransport(
            api_key=settings.sendgrid_api_key,
            from_email=settings.mail_from_email,
            from_name=settings.mail_from_name,
            timeout=settings.mail_timeout_seconds,
        )
    notifications = NotificationDispatcher(transport, settings)

    return AppContext(
        settings=settings,
        database=database,
        passwords=passwords,
        tokens=tokens,
        admin=AdminAuthenticator(settings.admin_email, settings.admin_password, tokens),
        notifications=notifications,
        users=ReferralEngine(
            database,
            passwords,
            tokens,
            notifications,
            code_length=settings.referral_code_length,
            phone_region=settings.default_phone_region,
        ),
        campaigns=CampaignService(database),
    )


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the context stored on the app."""
    return request.app.state.context
