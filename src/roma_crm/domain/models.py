"""SQLAlchemy ORM models for the Roma CRM.

All models use SQLite-compatible types:
- String(36) for UUID primary keys
- JSON for structured data (no JSONB)
- DateTime for timestamps (no TIMESTAMPTZ)
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from roma_crm.domain.enums import CompanyPlan, CompanyStatus, MediaStatus
from roma_crm.infra.database import Base


# ---------------------------------------------------------------------------
# Tenancy
# ---------------------------------------------------------------------------


class Organization(Base):
    """Agency tenant. Every company and staff user belongs to one."""

    __tablename__ = "organizations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now())

    users = relationship("User", back_populates="organization")
    companies = relationship("Company", back_populates="organization")


class User(Base):
    """Staff member. Provisioned by the identity provider, referenced by JWT ``sub``."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="staff")  # staff, admin
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=func.now())

    organization = relationship("Organization", back_populates="users")


# ---------------------------------------------------------------------------
# Client companies
# ---------------------------------------------------------------------------


class Company(Base):
    """Client business managed by an organization.

    Column values derived from the intake document are written by the
    field extractor; the ``webflow_*`` columns are written back after a
    successful publish.
    """

    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)

    # Identity
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=True)
    website = Column(String(500), nullable=True)

    # Contact
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)

    plan = Column(String(20), nullable=False, default=CompanyPlan.DISCOVER.value)
    status = Column(String(20), nullable=False, default=CompanyStatus.NEW.value)

    # Marketing copy
    tagline = Column(String(500), nullable=True)
    about = Column(Text, nullable=True)
    ai_summary = Column(Text, nullable=True)
    pricing_info = Column(Text, nullable=True)
    tag1 = Column(String(100), nullable=True)
    tag2 = Column(String(100), nullable=True)
    tag3 = Column(String(100), nullable=True)
    tag4 = Column(String(100), nullable=True)
    logo_url = Column(String(1000), nullable=True)

    # Social / maps
    google_maps_url = Column(String(1000), nullable=True)
    facebook_url = Column(String(500), nullable=True)
    instagram_url = Column(String(500), nullable=True)
    youtube_url = Column(String(500), nullable=True)

    # Webflow linkage
    webflow_profile_id = Column(String(64), nullable=True)
    webflow_slug = Column(String(255), nullable=True)
    webflow_published = Column(Boolean, default=False)
    last_synced_at = Column(DateTime, nullable=True)

    # Billing linkage
    stripe_customer_id = Column(String(100), nullable=True)
    stripe_subscription_id = Column(String(100), nullable=True)

    onboarding_completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="companies")


class Intake(Base):
    """Raw intake document (``roma_data``), one per company."""

    __tablename__ = "intakes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, unique=True)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=False, index=True)
    roma_data = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class Review(Base):
    """Customer review imported from the intake document."""

    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=True)
    platform = Column(String(50), nullable=False, default="Google")
    author = Column(String(255), nullable=False, default="Anonymous")
    rating = Column(Integer, nullable=False, default=5)
    text = Column(Text, nullable=False)
    review_date = Column(String(100), nullable=True)  # free text, e.g. "2 months ago"
    url = Column(String(1000), nullable=True)
    status = Column(String(20), nullable=False, default="active")
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=func.now())


class MediaItem(Base):
    """Image or video asset owned by a company."""

    __tablename__ = "media_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    organization_id = Column(String(36), ForeignKey("organizations.id"), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_url = Column(String(1000), nullable=False)
    source_url = Column(String(1000), nullable=True)
    storage_path = Column(String(500), nullable=True)
    file_type = Column(String(20), nullable=False, default="image")  # image, video
    mime_type = Column(String(100), nullable=True)
    file_size = Column(Integer, nullable=True)
    alt_text = Column(String(500), nullable=True)
    category = Column(String(20), nullable=False, default="photo")
    tags = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default=MediaStatus.PENDING.value)
    priority = Column(Integer, nullable=False, default=0)
    relocation_status = Column(String(20), nullable=True)  # success, degraded, failed
    uploaded_by_type = Column(String(20), nullable=False, default="intake")  # intake, staff, client
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())


class Service(Base):
    """Service offering listed on the company profile."""

    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    included = Column(JSON, default=list)  # up to four bullet points
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=func.now())


class Faq(Base):
    __tablename__ = "faqs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    category = Column(String(100), nullable=True)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=func.now())


class Location(Base):
    __tablename__ = "locations"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)
    phone = Column(String(50), nullable=True)
    hours = Column(JSON, nullable=True)
    is_primary = Column(Boolean, default=False)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=func.now())


class OnboardingStep(Base):
    """One item of the fixed onboarding checklist for a company."""

    __tablename__ = "onboarding_steps"
    __table_args__ = (UniqueConstraint("company_id", "step_number", name="uq_onboarding_step"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    company_id = Column(String(36), ForeignKey("companies.id"), nullable=False, index=True)
    step_number = Column(Integer, nullable=False)
    title = Column(String(100), nullable=False)
    completed = Column(Boolean, default=False)
    completed_at = Column(DateTime, nullable=True)
