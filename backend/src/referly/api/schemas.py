"""Request and response models for the HTTP API.

Field names on the wire follow the camelCase names existing clients send
(``referralCode``, ``couponCode``, ``aboutCampaign``); snake_case is
accepted on input as well. Responses whitelist fields explicitly so no
credential material is ever serialized.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from referly.storage.models import CampaignStatus


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ==================== USERS ====================


class RegisterRequest(ApiModel):
    """User registration request."""
    name: str | None = Field(default=None, max_length=255)
    email: EmailStr
    phone: str | None = Field(default=None, max_length=50)
    age: int | None = Field(default=None, ge=0, le=150)
    password: str = Field(..., min_length=1, max_length=128)
    referral_code: str | None = Field(default=None, alias="referralCode", max_length=32)


class RegisterResponse(ApiModel):
    message: str = "User registered successfully"
    token: str
    referral_code: str = Field(alias="referralCode")


class LoginRequest(ApiModel):
    """User login request."""
    email: EmailStr
    password: str
    coupon_code: str | None = Field(default=None, alias="couponCode", max_length=32)


class UserResponse(ApiModel):
    """User data for API responses."""
    id: int
    name: str | None = None
    email: str
    phone: str | None = None
    age: int | None = None
    referral_code: str = Field(alias="referralCode")
    referred_by: str | None = Field(default=None, alias="referredBy")
    referral_count: int = Field(alias="referralCount")
    rewards: int
    created_at: datetime | None = Field(default=None, alias="createdAt")


class LoginResponse(ApiModel):
    token: str
    user: UserResponse
    referrer_name: str = Field(alias="referrerName")
    total_logins: int = Field(alias="totalLogins")


class ReferredUser(ApiModel):
    """Referee projection: no ids, counters or credentials."""
    name: str | None = None
    email: str
    referral_code: str = Field(alias="referralCode")


class ReferredUsersResponse(ApiModel):
    success: bool = True
    referral_code: str = Field(alias="referralCode")
    referred_users: list[ReferredUser] = Field(default_factory=list, alias="referredUsers")


class ReferralEntry(ApiModel):
    referee: str
    campaign: str | None = None
    login_count: int = Field(alias="loginCount")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class ReferralStatsResponse(ApiModel):
    referral_code: str = Field(alias="referralCode")
    referral_count: int = Field(alias="referralCount")
    rewards: int
    referrals: list[ReferralEntry] = Field(default_factory=list)


class DeleteUserResponse(ApiModel):
    message: str = "User deleted successfully"
    user: UserResponse


# ==================== ADMIN ====================


class AdminLoginRequest(ApiModel):
    email: str
    password: str


class AdminLoginResponse(ApiModel):
    token: str
    message: str = "Admin login successful"


class AdminNameResponse(ApiModel):
    name: str
    email: str | None = None


# ==================== CAMPAIGNS ====================


class CampaignCreate(ApiModel):
    """Campaign creation request."""
    title: str = Field(..., min_length=1, max_length=255)
    about_campaign: str | None = Field(default=None, alias="aboutCampaign")
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    reward_type: str | None = Field(default=None, alias="rewardType", max_length=100)
    reward_format: str | None = Field(default=None, alias="rewardFormat", max_length=100)
    discount_value: float | None = Field(default=None, alias="discountValue", ge=0)
    campaign_message: str | None = Field(default=None, alias="campaignMessage")
    status: CampaignStatus = CampaignStatus.ACTIVE


class CampaignUpdate(ApiModel):
    """Partial campaign update; omitted fields are left unchanged."""
    title: str | None = Field(default=None, min_length=1, max_length=255)
    about_campaign: str | None = Field(default=None, alias="aboutCampaign")
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    reward_type: str | None = Field(default=None, alias="rewardType", max_length=100)
    reward_format: str | None = Field(default=None, alias="rewardFormat", max_length=100)
    discount_value: float | None = Field(default=None, alias="discountValue", ge=0)
    campaign_message: str | None = Field(default=None, alias="campaignMessage")
    status: CampaignStatus | None = None


class CampaignResponse(ApiModel):
    id: int
    title: str
    about_campaign: str | None = Field(default=None, alias="aboutCampaign")
    start_date: date | None = Field(default=None, alias="startDate")
    end_date: date | None = Field(default=None, alias="endDate")
    reward_type: str | None = Field(default=None, alias="rewardType")
    reward_format: str | None = Field(default=None, alias="rewardFormat")
    discount_value: float | None = Field(default=None, alias="discountValue")
    campaign_message: str | None = Field(default=None, alias="campaignMessage")
    status: CampaignStatus
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class CampaignMutationResponse(ApiModel):
    message: str
    campaign: CampaignResponse


# ==================== EMAIL ====================


class BroadcastRequest(ApiModel):
    """Broadcast request; subject and body fall back to the campaign announcement."""
    subject: str | None = Field(default=None, max_length=255)
    body: str | None = None


class BroadcastResponse(ApiModel):
    success: bool
    message: str
    sent: int
    failed: int


class UserMailRequest(ApiModel):
    email: str | None = None


class MessageResponse(ApiModel):
    success: bool = True
    message: str
