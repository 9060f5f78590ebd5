"""Enumerations shared by models, services and API schemas."""

from enum import Enum


class CompanyStatus(str, Enum):
    PENDING = "PENDING"
    NEW = "NEW"
    ACTIVE = "ACTIVE"
    ONBOARDED = "ONBOARDED"
    CHURNED = "CHURNED"


class CompanyPlan(str, Enum):
    DISCOVER = "DISCOVER"
    VERIFIED = "VERIFIED"


class MediaCategory(str, Enum):
    LOGO = "logo"
    PHOTO = "photo"
    VIDEO = "video"
    EYES_CONTENT = "eyes-content"


class MediaStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"


class OutcomeStatus(str, Enum):
    """Tri-state outcome for best-effort external calls."""

    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILED = "failed"


class PublishStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
