"""Pydantic v2 schemas for API request/response validation."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from roma_crm.domain.enums import CompanyPlan, MediaStatus


# ---------------------------------------------------------------------------
# Companies
# ---------------------------------------------------------------------------


class CompanyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    website: str | None = None
    email: str | None = None
    phone: str | None = None
    plan: CompanyPlan = CompanyPlan.DISCOVER


class CompanyResponse(BaseModel):
    """Company record as shown on the dashboard."""

    id: str
    organization_id: str
    name: str
    slug: str | None = None
    website: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    plan: str
    status: str
    tagline: str | None = None
    about: str | None = None
    ai_summary: str | None = None
    pricing_info: str | None = None
    tag1: str | None = None
    tag2: str | None = None
    tag3: str | None = None
    tag4: str | None = None
    logo_url: str | None = None
    google_maps_url: str | None = None
    facebook_url: str | None = None
    instagram_url: str | None = None
    youtube_url: str | None = None
    webflow_profile_id: str | None = None
    webflow_slug: str | None = None
    webflow_published: bool | None = None
    last_synced_at: datetime | None = None
    onboarding_completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ReviewResponse(BaseModel):
    id: str
    platform: str
    author: str
    rating: int
    text: str
    review_date: str | None = None
    url: str | None = None
    status: str

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------


class PasteIntakeRequest(BaseModel):
    """Raw intake document pasted by an operator."""

    company_id: str
    roma_data: dict[str, Any]


class ParseIntakeDocumentRequest(BaseModel):
    document: str
    company_name: str | None = None


class IntakeResponse(BaseModel):
    company_id: str
    roma_data: dict[str, Any]
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Media
# ---------------------------------------------------------------------------


class MediaItemResponse(BaseModel):
    id: str
    company_id: str
    file_name: str | None = None
    file_url: str
    source_url: str | None = None
    file_type: str
    mime_type: str | None = None
    category: str
    tags: list[str] = []
    status: str
    priority: int
    alt_text: str | None = None
    relocation_status: str | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MediaItemUpdate(BaseModel):
    """Partial update of a media item; omitted fields are left unchanged."""

    status: MediaStatus | None = None
    tags: list[str] | None = None
    priority: int | None = None
    alt_text: str | None = None


# ---------------------------------------------------------------------------
# Onboarding
# ---------------------------------------------------------------------------


class OnboardingStepResponse(BaseModel):
    step_number: int
    title: str
    completed: bool
    completed_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Webflow
# ---------------------------------------------------------------------------


class PublishCompanyRequest(BaseModel):
    company_id: str
