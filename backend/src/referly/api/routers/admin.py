"""Admin session endpoints."""

from fastapi import APIRouter, Depends, Request

from referly.api.rate_limit import limiter
from referly.api.schemas import AdminLoginRequest, AdminLoginResponse, AdminNameResponse
from referly.auth.middleware import require_admin
from referly.context import AppContext, get_context

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/login", response_model=AdminLoginResponse)
@limiter.limit("5/minute")
def admin_login(request: Request, body: AdminLoginRequest, ctx: AppContext = Depends(get_context)):
    """Exchange the configured admin credentials for an admin token."""
    token = ctx.admin.login(body.email, body.password)
    return AdminLoginResponse(token=token)


@router.get("/name", response_model=AdminNameResponse, dependencies=[Depends(require_admin)])
def admin_name(ctx: AppContext = Depends(get_context)):
    return AdminNameResponse(name=ctx.settings.admin_name, email=ctx.settings.admin_email)
