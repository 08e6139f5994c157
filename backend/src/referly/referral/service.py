"""Referral engine: registration with attribution, login with reward accrual."""

import uuid
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError

from referly.auth.local import PasswordHasher, TokenService
from referly.email.service import NotificationDispatcher
from referly.errors import ConflictError, DependencyFailure, InvalidCredentialsError, NotFoundError, ValidationError
from referly.logging_config import get_logger
from referly.normalizers import normalize_code, normalize_email, normalize_phone
from referly.storage.db import Database
from referly.storage.models import Referral, User
from referly.storage.repo import ReferralRepository, UserRepository

logger = get_logger(__name__)

UNKNOWN_REFERRER = "Unknown"

# Attempts at issuing a referral code before giving up on uniqueness
MAX_CODE_ATTEMPTS = 5


@dataclass
class ReferrerInfo:
    """Snapshot of the referrer taken inside the registration transaction."""
    name: str | None
    email: str
    referral_code: str


@dataclass
class RegistrationResult:
    token: str
    referral_code: str
    user: User
    referrer: ReferrerInfo | None = None


@dataclass
class LoginResult:
    token: str
    user: User
    referrer_name: str = UNKNOWN_REFERRER
    total_logins: int = 0


@dataclass
class ReferralStats:
    referral_code: str
    referral_count: int
    rewards: int
    referrals: list[Referral] = field(default_factory=list)


class ReferralEngine:
    """Binds identities, the referral ledger and notifications together."""

    def __init__(
        self,
        database: Database,
        passwords: PasswordHasher,
        tokens: TokenService,
        notifications: NotificationDispatcher,
        code_length: int = 8,
        phone_region: str = "IN",
    ):
        self.db = database
        self.passwords = passwords
        self.tokens = tokens
        self.notifications = notifications
        self.code_length = code_length
        self.phone_region = phone_region
        self.logger = get_logger(__name__)

    def _generate_code(self) -> str:
        """Short random code cut from a UUID4; the store's unique index is the real guard."""
        return uuid.uuid4().hex[: self.code_length]

    # ==================== REGISTRATION ====================

    def register(
        self,
        email: str,
        password: str,
        name: str | None = None,
        phone: str | None = None,
        age: int | None = None,
        referral_code: str | None = None,
    ) -> RegistrationResult:
        """Register a user, attributing the signup when the referral code resolves.

        Unknown referral codes register the user unreferred.

        Raises:
            ValidationError: If email or password is blank
            ConflictError: If the email is already registered
            DependencyFailure: If no unique referral code could be issued
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required")
        if not password:
            raise ValidationError("Password is required")

        supplied_code = normalize_code(referral_code)
        password_hash = self.passwords.hash(password)
        phone = normalize_phone(phone, self.phone_region)

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            issued_code = self._generate_code()
            try:
                with self.db.session() as session:
                    user, referrer = self._create_user(
                        session, email, password_hash, issued_code, name, phone, age, supplied_code
                    )
            except IntegrityError:
                # Either a racing registration took the email or the code collided
                if self.email_taken(email):
                    raise ConflictError("User already exists")
                self.logger.warning("referral_code_collision", attempt=attempt)
                continue

            token = self.tokens.issue_user_token(user.id)
            self.logger.info(
                "user_registered",
                user_id=user.id,
                referral_code=issued_code,
                referred_by=user.referred_by,
            )
            return RegistrationResult(
                token=token,
                referral_code=issued_code,
                user=user,
                referrer=referrer,
            )

        self.logger.error("referral_code_exhausted", attempts=MAX_CODE_ATTEMPTS)
        raise DependencyFailure("Could not issue a referral code")

    def _create_user(
        self,
        session,
        email: str,
        password_hash: str,
        issued_code: str,
        name: str | None,
        phone: str | None,
        age: int | None,
        supplied_code: str | None,
    ) -> tuple[User, ReferrerInfo | None]:
        users = UserRepository(session)
        referrals = ReferralRepository(session)

        if users.get_by_email(email) is not None:
            raise ConflictError("User already exists")

        referrer = users.get_by_referral_code(supplied_code) if supplied_code else None
        if supplied_code and referrer is None:
            self.logger.info("referral_code_unknown", referral_code=supplied_code)

        user = users.create(
            email=email,
            password_hash=password_hash,
            referral_code=issued_code,
            name=name,
            phone=phone,
            age=age,
            referred_by=supplied_code if referrer else None,
        )

        if referrer is None:
            return user, None

        users.increment_referral_count(supplied_code)
        referrals.create(referrer=supplied_code, referee=email, coupon_code=supplied_code)
        return user, ReferrerInfo(
            name=referrer.name,
            email=referrer.email,
            referral_code=referrer.referral_code,
        )

    def email_taken(self, email: str) -> bool:
        with self.db.session() as session:
            return UserRepository(session).get_by_email(normalize_email(email)) is not None

    async def notify_registration(self, result: RegistrationResult) -> None:
        """Send the welcome and referral-success notices for a committed registration."""
        user = result.user
        await self.notifications.send_welcome(user.email, user.name, result.referral_code)
        if result.referrer is not None:
            await self.notifications.send_referral_success(
                result.referrer.email,
                result.referrer.name,
                user.name,
                result.referrer.referral_code,
            )

    # ==================== LOGIN ====================

    def login(self, email: str, password: str, coupon_code: str | None = None) -> LoginResult:
        """Authenticate a user and attribute the login to a referral when a coupon matches.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        coupon_code = normalize_code(coupon_code)

        with self.db.session() as session:
            users = UserRepository(session)
            user = users.get_by_email(normalize_email(email))
            if user is None or not self.passwords.verify(password or "", user.password_hash):
                self.logger.warning("login_failed")
                raise InvalidCredentialsError("Invalid credentials")

            referrer_name = UNKNOWN_REFERRER
            total_logins = 0

            if coupon_code:
                referrals = ReferralRepository(session)
                referral = referrals.get_by_coupon(coupon_code, referee=user.email)
                if referral is not None:
                    total_logins = referrals.increment_login_count(referral.id)
                    referrer = users.get_by_referral_code(referral.referrer)
                    if referrer is not None:
                        users.increment_rewards(referral.referrer)
                        referrer_name = referrer.name or UNKNOWN_REFERRER
                    self.logger.info(
                        "referral_login_attributed",
                        referral_id=referral.id,
                        total_logins=total_logins,
                    )
                session.refresh(user)

        self.logger.info("user_logged_in", user_id=user.id)
        return LoginResult(
            token=self.tokens.issue_user_token(user.id),
            user=user,
            referrer_name=referrer_name,
            total_logins=total_logins,
        )

    # ==================== QUERIES ====================

    def list_users(self) -> list[User]:
        with self.db.session() as session:
            return UserRepository(session).list_all()

    def list_emails(self) -> list[str]:
        with self.db.session() as session:
            return UserRepository(session).list_emails()

    def get_user_by_email(self, email: str) -> User:
        with self.db.session() as session:
            user = UserRepository(session).get_by_email(normalize_email(email))
        if user is None:
            raise NotFoundError("User not found")
        return user

    def list_referred_users(self, referral_code: str) -> list[User]:
        """Users who registered with the given code; empty when none."""
        with self.db.session() as session:
            return UserRepository(session).list_referred_by(referral_code.strip())

    def referral_stats(self, referral_code: str) -> ReferralStats:
        """Counters and ledger entries for one referral code."""
        referral_code = referral_code.strip()
        with self.db.session() as session:
            owner = UserRepository(session).get_by_referral_code(referral_code)
            if owner is None:
                raise NotFoundError("Referral code not found")
            return ReferralStats(
                referral_code=owner.referral_code,
                referral_count=owner.referral_count,
                rewards=owner.rewards,
                referrals=ReferralRepository(session).list_by_referrer(referral_code),
            )

    def delete_user(self, user_id: int) -> User:
        """Hard-delete a user. Referral entries naming the user are left in place.

        Raises:
            NotFoundError: If no user has this id
        """
        with self.db.session() as session:
            users = UserRepository(session)
            user = users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            users.delete(user)

        self.logger.info("user_deleted", user_id=user_id)
        return user

