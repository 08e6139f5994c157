"""Authentication dependencies for FastAPI."""

from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from referly.context import AppContext, get_context
from referly.logging_config import get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    ctx: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Require an admin session token.

    Returns:
        Admin token payload

    Raises:
        HTTPException: 401 if the token is missing, invalid or not an admin token
    """
    payload = ctx.tokens.decode(credentials.credentials) if credentials else None

    if not payload or payload.get("role") != "admin":
        logger.warning("admin_auth_rejected", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    request.state.admin = payload.get("sub")
    return payload
