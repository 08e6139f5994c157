"""Database models for users, the referral ledger and campaigns."""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SQLEnum, Float, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class CampaignStatus(str, Enum):
    """Campaign status values."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(Base):
    """Registered user and their referral participation."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Identity
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Referral participation
    referral_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    referred_by: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    referral_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    rewards: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', code='{self.referral_code}')>"


class Referral(Base):
    """One attribution edge between a referrer's code and a referee."""

    __tablename__ = "referrals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    referrer: Mapped[str] = mapped_column(String(32), nullable=False, index=True)  # referrer's code
    referee: Mapped[str] = mapped_column(String(255), nullable=False, index=True)  # referee's email
    campaign: Mapped[str | None] = mapped_column(String(255), nullable=True)
    coupon_code: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    login_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Referral(referrer='{self.referrer}', referee='{self.referee}', logins={self.login_count})>"


class Campaign(Base):
    """Marketing campaign configuration."""

    __tablename__ = "campaigns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    about_campaign: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Reward shape
    reward_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    reward_format: Mapped[str | None] = mapped_column(String(100), nullable=True)
    discount_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    campaign_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[CampaignStatus] = mapped_column(
        SQLEnum(CampaignStatus), default=CampaignStatus.ACTIVE, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Campaign(id={self.id}, title='{self.title}', status={self.status})>"
