"""User registration, login and referral lookup endpoints.

Handlers are plain functions so FastAPI runs the blocking bcrypt and
session work in its threadpool, off the event loop.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status

from referly.api.rate_limit import limiter
from referly.api.schemas import (
    DeleteUserResponse,
    LoginRequest,
    LoginResponse,
    ReferralEntry,
    ReferralStatsResponse,
    ReferredUser,
    ReferredUsersResponse,
    RegisterRequest,
    RegisterResponse,
    UserResponse,
)
from referly.auth.middleware import require_admin
from referly.context import AppContext, get_context
from referly.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["users"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    ctx: AppContext = Depends(get_context),
):
    """Register a new user account.

    A referral code that resolves to an existing user attributes the signup
    to that user; unknown codes register the user unreferred. Welcome and
    referral-success emails go out after the response.
    """
    result = ctx.users.register(
        email=body.email,
        password=body.password,
        name=body.name,
        phone=body.phone,
        age=body.age,
        referral_code=body.referral_code,
    )
    background_tasks.add_task(ctx.users.notify_registration, result)

    return RegisterResponse(token=result.token, referral_code=result.referral_code)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, ctx: AppContext = Depends(get_context)):
    """Login with email and password.

    A coupon code matching a recorded referral counts the login for that
    referral and earns its referrer one reward.
    """
    result = ctx.users.login(body.email, body.password, coupon_code=body.coupon_code)

    return LoginResponse(
        token=result.token,
        user=UserResponse.model_validate(result.user),
        referrer_name=result.referrer_name,
        total_logins=result.total_logins,
    )


@router.get(
    "/refer/data",
    response_model=list[UserResponse],
    dependencies=[Depends(require_admin)],
)
def list_users(ctx: AppContext = Depends(get_context)):
    """List every registered user."""
    return [UserResponse.model_validate(user) for user in ctx.users.list_users()]


@router.get("/refer/data/{email}", response_model=UserResponse)
def get_user(email: str, ctx: AppContext = Depends(get_context)):
    """Get a single user by email."""
    return UserResponse.model_validate(ctx.users.get_user_by_email(email))


@router.get("/refer/by-coupon/{code}", response_model=ReferredUsersResponse)
def list_referred_users(code: str, ctx: AppContext = Depends(get_context)):
    """List users who registered with a referral code.

    An unknown or unused code yields an empty list, not an error.
    """
    referred = ctx.users.list_referred_users(code)
    return ReferredUsersResponse(
        referral_code=code,
        referred_users=[ReferredUser.model_validate(user) for user in referred],
    )


@router.get(
    "/refer/stats/{code}",
    response_model=ReferralStatsResponse,
    dependencies=[Depends(require_admin)],
)
def referral_stats(code: str, ctx: AppContext = Depends(get_context)):
    """Counters and ledger entries for one referral code."""
    stats = ctx.users.referral_stats(code)
    return ReferralStatsResponse(
        referral_code=stats.referral_code,
        referral_count=stats.referral_count,
        rewards=stats.rewards,
        referrals=[ReferralEntry.model_validate(entry) for entry in stats.referrals],
    )


@router.delete(
    "/user/delete/{user_id}",
    response_model=DeleteUserResponse,
    dependencies=[Depends(require_admin)],
)
def delete_user(user_id: int, ctx: AppContext = Depends(get_context)):
    """Hard-delete a user. Referral entries naming them are kept."""
    user = ctx.users.delete_user(user_id)
    return DeleteUserResponse(user=UserResponse.model_validate(user))
