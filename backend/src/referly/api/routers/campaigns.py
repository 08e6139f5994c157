"""Campaign CRUD endpoints."""

from fastapi import APIRouter, Depends, status

from referly.api.schemas import (
    CampaignCreate,
    CampaignMutationResponse,
    CampaignResponse,
    CampaignUpdate,
)
from referly.auth.middleware import require_admin
from referly.context import AppContext, get_context

router = APIRouter(prefix="/campaign", tags=["campaigns"])


@router.post(
    "",
    response_model=CampaignMutationResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_campaign(body: CampaignCreate, ctx: AppContext = Depends(get_context)):
    campaign = ctx.campaigns.create(body.model_dump())
    return CampaignMutationResponse(
        message="Campaign created successfully!",
        campaign=CampaignResponse.model_validate(campaign),
    )


@router.get("/data", response_model=list[CampaignResponse])
def list_campaigns(ctx: AppContext = Depends(get_context)):
    return [CampaignResponse.model_validate(c) for c in ctx.campaigns.list_all()]


@router.get("/{campaign_id}", response_model=CampaignResponse)
def get_campaign(campaign_id: int, ctx: AppContext = Depends(get_context)):
    return CampaignResponse.model_validate(ctx.campaigns.get(campaign_id))


@router.put(
    "/{campaign_id}",
    response_model=CampaignMutationResponse,
    dependencies=[Depends(require_admin)],
)
def update_campaign(campaign_id: int, body: CampaignUpdate, ctx: AppContext = Depends(get_context)):
    """Update a campaign; only the fields present in the body change."""
    campaign = ctx.campaigns.update(campaign_id, body.model_dump(exclude_unset=True))
    return CampaignMutationResponse(
        message="Campaign updated successfully!",
        campaign=CampaignResponse.model_validate(campaign),
    )


@router.delete(
    "/{campaign_id}",
    response_model=CampaignMutationResponse,
    dependencies=[Depends(require_admin)],
)
def delete_campaign(campaign_id: int, ctx: AppContext = Depends(get_context)):
    campaign = ctx.campaigns.delete(campaign_id)
    return CampaignMutationResponse(
        message="Campaign deleted successfully!",
        campaign=CampaignResponse.model_validate(campaign),
    )
