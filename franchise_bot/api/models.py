"""Pydantic модели для API франчайзингового каталога."""

from datetime import date, datetime
from enum import StrEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from franchise_bot.api.utils import parse_date, parse_datetime


class ConsultationStatus(StrEnum):
    """Consultation lifecycle statuses."""

    PENDING = "PENDING"
    RESCHEDULE_REQUEST = "RESCHEDULE_REQUEST"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class AccountRole(StrEnum):
    """Backend account types."""

    USER = "USER"
    MANAGER = "MANAGER"


class RescheduleAnswer(StrEnum):
    """User answer to a manager reschedule proposal."""

    ACCEPT = "ACCEPT"
    REJECT = "REJECT"


class APIModel(BaseModel):
    """Base model accepting both camelCase aliases and field names."""

    model_config = ConfigDict(populate_by_name=True)


class APIResponse(APIModel):
    """Base model for API response envelope."""

    success: bool = Field(..., description="Success of the request")
    message: Optional[str] = Field(None, description="Message")
    error_code: Optional[str] = Field(None, description="Error code", alias="errorCode")
    timestamp: Optional[datetime] = Field(None, description="Server time")

    @field_validator("timestamp", mode="before")
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime | None:
        """Parse timestamp from string."""
        return parse_datetime(v)


class EmptyResponse(APIResponse):
    """Response whose payload is not used by the bot."""

    data: Any = Field(None, description="Raw payload")


class PageInfo(APIModel):
    """Pagination block of a paged payload."""

    page: int = Field(0, description="Zero-based page number")
    size: int = Field(0, description="Page size")
    total_elements: int = Field(0, description="Total items", alias="totalElements")
    total_pages: int = Field(0, description="Total pages", alias="totalPages")
    first: bool = Field(True, description="Is the first page")
    last: bool = Field(True, description="Is the last page")
    has_next: bool = Field(False, description="Has a next page", alias="hasNext")
    has_previous: bool = Field(
        False,
        description="Has a previous page",
        alias="hasPrevious",
    )


class Category(APIModel):
    """Model of the brand category."""

    id: int = Field(..., description="ID of the category", alias="categoryId")
    name: str = Field(..., description="Name of the category", alias="categoryName")
    description: Optional[str] = Field(None, description="Description")
    brand_count: Optional[int] = Field(
        None,
        description="Number of brands in the category",
        alias="brandCount",
    )


class CategoriesResponse(APIResponse):
    """Response with a list of categories."""

    data: List[Category] = Field(default_factory=list, description="Categories")


class Brand(APIModel):
    """Model of the franchise brand.

    Monetary values are in units of 10,000 KRW.
    """

    id: int = Field(..., description="ID of the brand", alias="brandId")
    name: str = Field(..., description="Name of the brand", alias="brandName")
    category_id: Optional[int] = Field(None, alias="categoryId")
    category_name: Optional[str] = Field(None, alias="categoryName")
    description: Optional[str] = Field(None, alias="brandDescription")
    initial_cost: Optional[float] = Field(
        None,
        description="Franchise fee",
        alias="initialCost",
    )
    total_investment: Optional[float] = Field(
        None,
        description="Total start-up cost",
        alias="totalInvestment",
    )
    avg_monthly_revenue: Optional[float] = Field(
        None,
        description="Average monthly revenue per store",
        alias="avgMonthlyRevenue",
    )
    store_count: Optional[int] = Field(None, alias="storeCount")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    website_url: Optional[str] = Field(None, alias="websiteUrl")
    contact_info: Optional[str] = Field(None, alias="contactInfo")
    manager_name: Optional[str] = Field(None, alias="managerName")
    view_count: int = Field(0, alias="viewCount")
    save_count: int = Field(0, alias="saveCount")
    consultation_count: int = Field(0, alias="consultationCount")
    is_saved: Optional[bool] = Field(
        None,
        description="Saved by the requesting user, if known",
        alias="isSaved",
    )
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> datetime | None:
        """Parse dates from string."""
        return parse_datetime(v)


class BrandPage(APIModel):
    """Page of brands."""

    content: List[Brand] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class BrandPageResponse(APIResponse):
    """Response with a page of brands."""

    data: BrandPage = Field(default_factory=BrandPage)


class BrandDetailResponse(APIResponse):
    """Response with a single brand."""

    data: Brand


class SavedBrandsResponse(APIResponse):
    """Response with saved brands of the user.

    The backend returns either a page or a bare list here.
    """

    data: BrandPage = Field(default_factory=BrandPage)

    @field_validator("data", mode="before")
    @classmethod
    def wrap_list(cls, v: Any) -> Any:
        """Wrap a bare list into a page."""
        if isinstance(v, list):
            return {"content": v}
        if v is None:
            return {}
        return v


class SaveToggleResult(APIModel):
    """Result of the save toggle."""

    brand_id: Optional[int] = Field(None, alias="brandId")
    is_saved: Optional[bool] = Field(None, alias="isSaved")
    save_count: Optional[int] = Field(None, alias="saveCount")


class SaveToggleResponse(APIResponse):
    """Response of the save toggle."""

    data: Optional[SaveToggleResult] = None


class SaveStatusRequest(APIModel):
    """Request of saved flags for several brands."""

    brand_ids: List[int] = Field(..., alias="brandIds")


class SaveStatusResponse(APIResponse):
    """Response with saved flags keyed by brand ID."""

    data: Dict[int, bool] = Field(default_factory=dict)


class UserRef(APIModel):
    """Short user info embedded into other payloads."""

    id: int = Field(..., alias="userId")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class ManagerRef(APIModel):
    """Short manager info."""

    id: int = Field(..., alias="managerId")
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


class BrandRef(APIModel):
    """Short brand info embedded into consultations."""

    id: int = Field(..., alias="brandId")
    name: Optional[str] = Field(None, alias="brandName")


class LoginData(APIModel):
    """Payload of a successful login."""

    user_type: AccountRole = Field(..., alias="userType")
    user: Optional[UserRef] = None
    manager: Optional[ManagerRef] = None

    @property
    def account(self) -> UserRef | ManagerRef | None:
        """Return the account matching the user type."""
        if self.user_type == AccountRole.USER:
            return self.user
        return self.manager


class LoginRequest(APIModel):
    """Login request."""

    email: str
    password: str


class LoginResponse(APIResponse):
    """Login response."""

    data: LoginData


class Consultation(APIModel):
    """Model of the consultation request."""

    id: int = Field(..., alias="consultationId")
    brand: Optional[BrandRef] = None
    user: Optional[UserRef] = None
    preferred_date: Optional[date] = Field(None, alias="preferredDate")
    preferred_time: Optional[str] = Field(None, alias="preferredTime")
    message: Optional[str] = None
    status: ConsultationStatus = ConsultationStatus.PENDING
    adjusted_date: Optional[date] = Field(None, alias="adjustedDate")
    adjusted_time: Optional[str] = Field(None, alias="adjustedTime")
    adjustment_reason: Optional[str] = Field(None, alias="adjustmentReason")
    manager_note: Optional[str] = Field(None, alias="managerNote")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")
    confirmed_at: Optional[datetime] = Field(None, alias="confirmedAt")

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, v: Any) -> Any:
        """Accept both plain status names and status objects."""
        if isinstance(v, dict):
            return v.get("statusName") or v.get("name")
        return v

    @field_validator("preferred_date", "adjusted_date", mode="before")
    @classmethod
    def parse_day(cls, v: Any) -> date | None:
        """Parse dates from string."""
        if v is None or isinstance(v, date):
            return v
        return parse_date(v)

    @field_validator("created_at", "updated_at", "confirmed_at", mode="before")
    @classmethod
    def parse_moments(cls, v: Any) -> datetime | None:
        """Parse timestamps from string."""
        return parse_datetime(v)

    @property
    def brand_id(self) -> int | None:
        """ID of the consulted brand."""
        return self.brand.id if self.brand else None

    @property
    def brand_name(self) -> str:
        """Name of the consulted brand."""
        if self.brand and self.brand.name:
            return self.brand.name
        return f"#{self.brand_id}"


class ConsultationPage(APIModel):
    """Page of consultations."""

    content: List[Consultation] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class ConsultationResponse(APIResponse):
    """Response with a single consultation."""

    data: Consultation


class ConsultationPageResponse(APIResponse):
    """Response with a page of consultations."""

    data: ConsultationPage = Field(default_factory=ConsultationPage)


class ConsultationCreateRequest(APIModel):
    """Consultation creation request."""

    brand_id: int = Field(..., alias="brandId")
    preferred_date: date = Field(..., alias="preferredDate")
    preferred_time: str = Field(..., alias="preferredTime")
    message: str


class RescheduleRequest(APIModel):
    """Manager reschedule proposal."""

    adjusted_date: date = Field(..., alias="adjustedDate")
    adjusted_time: str = Field(..., alias="adjustedTime")
    adjustment_reason: Optional[str] = Field(None, alias="adjustmentReason")
    manager_note: Optional[str] = Field(None, alias="managerNote")


class RescheduleAnswerRequest(APIModel):
    """User answer to a reschedule proposal."""

    response: RescheduleAnswer
