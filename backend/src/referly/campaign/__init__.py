"""Campaign management."""

from referly.campaign.service import CampaignService

__all__ = ["CampaignService"]
