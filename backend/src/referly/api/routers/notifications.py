"""Email broadcast and targeted reminder endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from referly.api.schemas import BroadcastRequest, BroadcastResponse, MessageResponse, UserMailRequest
from referly.auth.middleware import require_admin
from referly.context import AppContext, get_context
from referly.errors import DependencyFailure, NotFoundError, ValidationError
from referly.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["notifications"], dependencies=[Depends(require_admin)])


@router.post("/send-email", response_model=BroadcastResponse)
async def send_email(body: BroadcastRequest | None = None, ctx: AppContext = Depends(get_context)):
    """Send one message to every registered user.

    Deliveries run concurrently; the response reports how many succeeded.
    Fails only when there is nobody to send to or every delivery failed.
    """
    body = body or BroadcastRequest()
    recipients = await run_in_threadpool(ctx.users.list_emails)
    if not recipients:
        raise NotFoundError("No users found to send emails")

    result = await ctx.notifications.broadcast(recipients, subject=body.subject, body=body.body)
    response = BroadcastResponse(
        success=result.sent > 0,
        message=f"Emails sent to {result.sent} of {result.total} users",
        sent=result.sent,
        failed=result.failed,
    )
    if result.sent == 0:
        logger.error("broadcast_failed", total=result.total)
        return JSONResponse(
            status_code=DependencyFailure.status_code,
            content=response.model_dump(by_alias=True),
        )
    return response


@router.post("/user/sendmail", response_model=MessageResponse)
async def send_user_mail(body: UserMailRequest, ctx: AppContext = Depends(get_context)):
    """Email one user their referral code and the register link."""
    if not body.email or not body.email.strip():
        raise ValidationError("Email address is required")

    try:
        user = await run_in_threadpool(ctx.users.get_user_by_email, body.email)
    except NotFoundError:
        raise NotFoundError("User not found with this email")

    sent = await ctx.notifications.send_referral_reminder(user.email, user.name, user.referral_code)
    if not sent:
        raise DependencyFailure("Failed to send email")

    return MessageResponse(message=f"Email sent to {user.email}")
