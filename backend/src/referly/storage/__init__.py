"""Persistence layer: models, database manager and repositories."""

from referly.storage.db import Database
from referly.storage.models import Base, Campaign, CampaignStatus, Referral, User
from referly.storage.repo import CampaignRepository, ReferralRepository, UserRepository

__all__ = [
    "Base",
    "Campaign",
    "CampaignRepository",
    "CampaignStatus",
    "Database",
    "Referral",
    "ReferralRepository",
    "User",
    "UserRepository",
]
