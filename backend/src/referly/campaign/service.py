"""Campaign service: plain CRUD over marketing campaigns."""

from datetime import date
from typing import Any

from referly.errors import NotFoundError, ValidationError
from referly.logging_config import get_logger
from referly.storage.db import Database
from referly.storage.models import Campaign, CampaignStatus
from referly.storage.repo import CampaignRepository

logger = get_logger(__name__)

CAMPAIGN_FIELDS = {
    "title",
    "about_campaign",
    "start_date",
    "end_date",
    "reward_type",
    "reward_format",
    "discount_value",
    "campaign_message",
    "status",
}


def _check_period(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError("endDate must not be before startDate")


class CampaignService:
    """Service for managing campaigns."""

    def __init__(self, database: Database):
        self.db = database
        self.logger = get_logger(__name__)

    def _clean(self, data: dict[str, Any]) -> dict[str, Any]:
        fields = {key: value for key, value in data.items() if key in CAMPAIGN_FIELDS}
        if "status" in fields:
            if fields["status"] is None:
                fields.pop("status")
            else:
                try:
                    fields["status"] = CampaignStatus(fields["status"])
                except ValueError:
                    raise ValidationError("status must be 'active' or 'inactive'")
        return fields

    def create(self, data: dict[str, Any]) -> Campaign:
        """Create a campaign.

        Raises:
            ValidationError: If the title is missing or the period is inverted
        """
        fields = self._clean(data)
        if not fields.get("title"):
            raise ValidationError("title is required")
        _check_period(fields.get("start_date"), fields.get("end_date"))

        with self.db.session() as session:
            return CampaignRepository(session).create(**fields)

    def list_all(self) -> list[Campaign]:
        with self.db.session() as session:
            return CampaignRepository(session).list_all()

    def get(self, campaign_id: int) -> Campaign:
        with self.db.session() as session:
            campaign = CampaignRepository(session).get_by_id(campaign_id)
        if campaign is None:
            raise NotFoundError("Campaign not found")
        return campaign

    def update(self, campaign_id: int, data: dict[str, Any]) -> Campaign:
        """Apply a partial update; only supplied fields change.

        Raises:
            NotFoundError: If the campaign does not exist
            ValidationError: If the resulting period is inverted
        """
        fields = self._clean(data)
        if "title" in fields and not fields["title"]:
            raise ValidationError("title must not be empty")

        with self.db.session() as session:
            repo = CampaignRepository(session)
            campaign = repo.get_by_id(campaign_id)
            if campaign is None:
                raise NotFoundError("Campaign not found")

            _check_period(
                fields.get("start_date", campaign.start_date),
                fields.get("end_date", campaign.end_date),
            )
            repo.update(campaign, **fields)
            session.flush()
            session.refresh(campaign)

        self.logger.info("campaign_updated", campaign_id=campaign_id, fields=sorted(fields))
        return campaign

    def delete(self, campaign_id: int) -> Campaign:
        with self.db.session() as session:
            repo = CampaignRepository(session)
            campaign = repo.get_by_id(campaign_id)
            if campaign is None:
                raise NotFoundError("Campaign not found")
            repo.delete(campaign)

        self.logger.info("campaign_deleted", campaign_id=campaign_id)
        return campaign
