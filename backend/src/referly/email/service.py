"""Transactional email for Referly, delivered through SendGrid.

Handles:
- Welcome emails after registration
- Referral success notices to referrers
- Targeted referral-code reminders
- Campaign broadcasts to every known user
"""

import asyncio
import html
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from referly.logging_config import get_logger
from referly.settings import Settings

logger = get_logger(__name__)

DEFAULT_BROADCAST_SUBJECT = "New Campaign Started - Join Now & Earn Instantly!"
DEFAULT_BROADCAST_BODY = (
    "Hello! A new referral campaign has started just for you. "
    "Invite your friends, they sign up using your referral code, "
    "and you both get rewarded instantly. Don't miss out!"
)


class MailTransport(Protocol):
    """Anything that can deliver one message."""

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        ...


class SendGridTransport:
    """Deliver messages through the SendGrid v3 ``mail/send`` endpoint.

    Without an API key the transport stays disabled and every send reports
    failure, so development setups run without mail credentials.
    """

    SENDGRID_API_URL = "https://api.sendgrid.com/v3/mail/send"

    def __init__(
        self,
        api_key: str | None,
        from_email: str,
        from_name: str,
        timeout: float = 30.0,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.sender = {"email": from_email, "name": from_name}
        self.timeout = timeout
        self._http_transport = http_transport

        if not self.enabled:
            logger.warning("email_service_disabled", reason="SENDGRID_API_KEY not set")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def build_payload(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> dict:
        # SendGrid requires text/plain to precede text/html
        content = [{"type": "text/html", "value": html_content}]
        if text_content:
            content.insert(0, {"type": "text/plain", "value": text_content})
        return {
            "personalizations": [{"to": [{"email": to_email}], "subject": subject}],
            "from": self.sender,
            "content": content,
        }

    async def send(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        """Returns True once SendGrid accepts the message (2xx)."""
        if not self.enabled:
            logger.warning("email_not_sent", reason="service_disabled", to=to_email)
            return False

        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._http_transport,
            headers={"Authorization": f"Bearer {self.api_key}"},
        ) as client:
            try:
                response = await client.post(
                    self.SENDGRID_API_URL,
                    json=self.build_payload(to_email, subject, html_content, text_content),
                )
            except httpx.RequestError as e:
                logger.error("email_send_error", to=to_email, error=str(e))
                return False

        if not response.is_success:
            logger.error(
                "email_send_failed",
                to=to_email,
                status=response.status_code,
                body=response.text[:200],
            )
            return False

        logger.info("email_sent", to=to_email, subject=subject)
        return True


@dataclass
class BroadcastResult:
    """Aggregate outcome of a broadcast."""
    total: int
    sent: int

    @property
    def failed(self) -> int:
        return self.total - self.sent


def _paragraphs(text: str) -> str:
    return "".join(f"<p>{html.escape(line)}</p>" for line in text.strip().splitlines() if line.strip())


class NotificationDispatcher:
    """Fire-and-forget notifications on top of a mail transport.

    Every delivery is bounded by a timeout; timeouts and transport errors are
    logged and reported as a failed delivery, never raised to the caller.
    """

    def __init__(self, transport: MailTransport, settings: Settings):
        self.transport = transport
        self.timeout = settings.mail_timeout_seconds
        self.register_link = f"{settings.frontend_url.rstrip('/')}/register"

    async def send(
        self,
        to_email: str,
        subject: str,
        text_content: str,
        html_content: Optional[str] = None,
    ) -> bool:
        """Deliver one message.

        Returns:
            True if the transport accepted the message in time
        """
        html_content = html_content or _paragraphs(text_content)
        try:
            return await asyncio.wait_for(
                self.transport.send(to_email, subject, html_content, text_content),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.error("email_send_timeout", to=to_email, timeout=self.timeout)
            return False
        except Exception as e:
            logger.error("email_send_error", to=to_email, error=str(e))
            return False

    async def send_welcome(self, to_email: str, name: str | None, referral_code: str) -> bool:
        """Welcome a freshly registered user and hand them their code."""
        greeting = f"Hi {name}," if name else "Hi,"
        safe_greeting = html.escape(greeting)
        subject = "Welcome to Our App"
        html_content = (
            f"<h3>{safe_greeting}</h3>"
            f"<p>Thanks for registering! Your referral code is <strong>{referral_code}</strong>.</p>"
        )
        text_content = f"{greeting}\n\nThanks for registering! Your referral code is {referral_code}."
        return await self.send(to_email, subject, text_content, html_content)

    async def send_referral_success(
        self,
        to_email: str,
        referrer_name: str | None,
        referee_name: str | None,
        referral_code: str,
    ) -> bool:
        """Tell a referrer that someone signed up with their code."""
        greeting = f"Hey {referrer_name}," if referrer_name else "Hey,"
        who = referee_name or "Someone"
        safe_greeting, safe_who = html.escape(greeting), html.escape(who)
        subject = "You've Referred a New User!"
        html_content = (
            f"<h3>{safe_greeting}</h3>"
            f"<p>{safe_who} just signed up using your referral code <strong>{referral_code}</strong>!</p>"
        )
        text_content = f"{greeting}\n\n{who} just signed up using your referral code {referral_code}!"
        return await self.send(to_email, subject, text_content, html_content)

    async def send_referral_reminder(self, to_email: str, name: str | None, referral_code: str) -> bool:
        """Remind a user of their code and the register link."""
        text_content = f"""
Hi {name or 'there'},

Invite your friends and earn rewards instantly!

Use your unique referral code: {referral_code}

They can join using this link:
{self.register_link}

Hurry! Don't miss the chance to earn exciting rewards.
        """
        subject = f"Welcome {name}" if name else "Your referral code"
        return await self.send(to_email, subject, text_content.strip())

    async def broadcast(
        self,
        recipients: list[str],
        subject: str | None = None,
        body: str | None = None,
    ) -> BroadcastResult:
        """Send one message to every recipient concurrently.

        A failed delivery does not abort its siblings.
        """
        subject = subject or DEFAULT_BROADCAST_SUBJECT
        body = body or DEFAULT_BROADCAST_BODY
        html_content = (
            f"{_paragraphs(body)}"
            f"<p><a href='{self.register_link}'>Join Now</a></p>"
        )

        tasks = [self.send(to_email, subject, body, html_content) for to_email in recipients]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        sent = sum(1 for r in results if r is True)
        result = BroadcastResult(total=len(recipients), sent=sent)
        logger.info("broadcast_completed", total=result.total, sent=result.sent, failed=result.failed)
        return result
