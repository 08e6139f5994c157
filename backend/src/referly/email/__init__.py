"""Notification dispatch over a pluggable mail transport."""

from referly.email.service import (
    BroadcastResult,
    MailTransport,
    NotificationDispatcher,
    SendGridTransport,
)

__all__ = ["BroadcastResult", "MailTransport", "NotificationDispatcher", "SendGridTransport"]
