"""Repository layer for data access.

Counter mutations are single ``UPDATE ... SET col = col + 1`` statements so
concurrent referrals and logins against the same referrer never lose an
increment.
"""

from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from referly.logging_config import get_logger
from referly.storage.models import Campaign, Referral, User

logger = get_logger(__name__)


class UserRepository:
    """Repository for User entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        email: str,
        password_hash: str,
        referral_code: str,
        name: str | None = None,
        phone: str | None = None,
        age: int | None = None,
        referred_by: str | None = None,
    ) -> User:
        """Insert a new user and flush so the store assigns an id.

        Raises:
            sqlalchemy.exc.IntegrityError: If email or referral code is taken
        """
        user = User(
            name=name,
            email=email,
            phone=phone,
            age=age,
            password_hash=password_hash,
            referral_code=referral_code,
            referred_by=referred_by,
            referral_count=0,
            rewards=0,
        )
        self.session.add(user)
        self.session.flush()
        self.session.refresh(user)
        return user

    def get_by_id(self, user_id: int) -> User | None:
        return self.session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self.session.scalar(select(User).where(User.email == email))

    def get_by_referral_code(self, code: str) -> User | None:
        return self.session.scalar(select(User).where(User.referral_code == code))

    def list_all(self) -> list[User]:
        return list(self.session.scalars(select(User).order_by(User.id)))

    def list_emails(self) -> list[str]:
        return list(self.session.scalars(select(User.email).order_by(User.id)))

    def list_referred_by(self, code: str) -> list[User]:
        """List users whose referred_by equals the given code."""
        return list(
            self.session.scalars(
                select(User).where(User.referred_by == code).order_by(User.id)
            )
        )

    def increment_referral_count(self, code: str) -> int:
        """Atomically add one to the referral count of the code's owner.

        Returns:
            Number of rows updated (0 if the code is unknown)
        """
        result = self.session.execute(
            update(User)
            .where(User.referral_code == code)
            .values(referral_count=User.referral_count + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def increment_rewards(self, code: str) -> int:
        """Atomically add one reward to the code's owner."""
        result = self.session.execute(
            update(User)
            .where(User.referral_code == code)
            .values(rewards=User.rewards + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()


class ReferralRepository:
    """Repository for Referral ledger entries."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        referrer: str,
        referee: str,
        coupon_code: str,
        campaign: str | None = None,
    ) -> Referral:
        referral = Referral(
            referrer=referrer,
            referee=referee,
            coupon_code=coupon_code,
            campaign=campaign,
            login_count=0,
        )
        self.session.add(referral)
        self.session.flush()
        self.session.refresh(referral)
        logger.info("referral_recorded", referrer=referrer, referral_id=referral.id)
        return referral

    def get_by_coupon(self, coupon_code: str, referee: str | None = None) -> Referral | None:
        """Get the referral a coupon login should be counted against.

        The row recorded for ``referee`` wins; otherwise the earliest row
        under the coupon.
        """
        query = select(Referral).where(Referral.coupon_code == coupon_code)
        if referee:
            own = self.session.scalar(query.where(Referral.referee == referee).order_by(Referral.id).limit(1))
            if own is not None:
                return own
        return self.session.scalar(query.order_by(Referral.id).limit(1))

    def list_by_referrer(self, code: str) -> list[Referral]:
        return list(
            self.session.scalars(
                select(Referral).where(Referral.referrer == code).order_by(Referral.id)
            )
        )

    def increment_login_count(self, referral_id: int) -> int:
        """Atomically add one login to a referral.

        Returns:
            The login count after the increment, read in the same transaction
        """
        self.session.execute(
            update(Referral)
            .where(Referral.id == referral_id)
            .values(login_count=Referral.login_count + 1)
            .execution_options(synchronize_session=False)
        )
        return self.session.scalar(select(Referral.login_count).where(Referral.id == referral_id))


class CampaignRepository:
    """Repository for Campaign entities."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, **fields: Any) -> Campaign:
        campaign = Campaign(**fields)
        self.session.add(campaign)
        self.session.flush()
        self.session.refresh(campaign)
        logger.info("campaign_created", campaign_id=campaign.id, title=campaign.title)
        return campaign

    def get_by_id(self, campaign_id: int) -> Campaign | None:
        return self.session.get(Campaign, campaign_id)

    def list_all(self) -> list[Campaign]:
        return list(self.session.scalars(select(Campaign).order_by(Campaign.id)))

    def update(self, campaign: Campaign, **fields: Any) -> Campaign:
        for key, value in fields.items():
            setattr(campaign, key, value)
        self.session.flush()
        return campaign

    def delete(self, campaign: Campaign) -> None:
        self.session.delete(campaign)
        self.session.flush()
