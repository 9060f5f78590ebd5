"""Shared test infrastructure for the Roma CRM test suite.

Provides:
- db_session: async SQLite in-memory session with all tables created
- make_organization / make_user / make_company: row factories
- fake_relocator: AssetRelocator stand-in that "relocates" every URL
- sample_intake: a realistic intake document mixing keyed and array shapes
- make_client: AsyncClient over a test app with get_db overridden
"""

import uuid
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import Base first, then models to register all tables
from roma_crm.infra.database import Base, get_db

import roma_crm.domain.models  # noqa: F401

from roma_crm.app.errors import register_error_handlers
from roma_crm.domain.enums import OutcomeStatus
from roma_crm.domain.models import Company, Organization, User
from roma_crm.services.asset_relocator import RelocationResult
from roma_crm.services.auth_service import create_access_token
from roma_crm.services.onboarding_service import OnboardingService

STORAGE_PREFIX = "https://store.test/storage/v1/object/public/media/"


# ---------------------------------------------------------------------------
# Database session fixture
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_session():
    """Async SQLite in-memory session with all tables created.

    Creates a fresh engine + tables for each test, yields a session,
    then rolls back and tears down.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_organization(db_session):
    async def _factory(name: str = "Test Agency") -> Organization:
        org = Organization(id=str(uuid.uuid4()), name=name)
        db_session.add(org)
        await db_session.commit()
        return org

    return _factory


@pytest.fixture
def make_user(db_session):
    async def _factory(organization: Organization, email: str | None = None) -> User:
        user = User(
            id=str(uuid.uuid4()),
            organization_id=organization.id,
            email=email or f"staff-{uuid.uuid4().hex[:8]}@agency.test",
            name="Test Staff",
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _factory


@pytest.fixture
def make_company(db_session):
    """Factory for companies with their onboarding steps seeded.

    Usage:
        company = await make_company(org, name="Bob's Dumpsters")
    """
    async def _factory(organization: Organization, name: str = "Acme Roofing", **attrs) -> Company:
        company = Company(
            id=str(uuid.uuid4()),
            organization_id=organization.id,
            name=name,
            **attrs,
        )
        db_session.add(company)
        await db_session.flush()
        await OnboardingService(db_session).seed_steps(company)
        await db_session.commit()
        return company

    return _factory


@pytest.fixture
def auth_headers():
    """Build a Bearer header for *user*."""
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.organization_id)}"}

    return _headers


# ---------------------------------------------------------------------------
# Relocation stand-in
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_relocator():
    """Relocator whose ``relocate`` succeeds for every URL without network I/O.

    ``relocator.calls`` records ``(source_url, destination_name, company_id)``.
    """
    relocator = MagicMock()
    relocator.calls = []

    async def _relocate(source_url, destination_name, company_id):
        relocator.calls.append((source_url, destination_name, company_id))
        path = f"{company_id}/{destination_name}.jpg"
        return RelocationResult(
            status=OutcomeStatus.SUCCESS,
            url=STORAGE_PREFIX + path,
            storage_path=path,
            content_type="image/jpeg",
            size=3,
        )

    relocator.relocate = _relocate
    return relocator


# ---------------------------------------------------------------------------
# Intake documents
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_intake() -> dict:
    return {
        "hero": {
            "business_name": "Bob's Dumpsters, LLC.",
            "tagline": "Same-day roll-off rentals",
            "logo_url": "https://bobsdumpsters.example/logo.png",
            "quick_actions": {
                "call_tel": "tel:+15125550100",
                "email_mailto": "mailto:hello@bobsdumpsters.example",
                "website_url": "https://bobsdumpsters.example",
                "maps_link": "https://maps.google.com/?q=<>",
            },
        },
        "ai_overview": {"overview_line": "Family-owned dumpster rental in Austin."},
        "about_and_badges": {
            "ai_summary_120w": "Bob's has served Central Texas since 2009.",
            "company_badges": ["Family Owned", {"text": "Same Day"}, "<>", "Licensed", "Insured", "Extra"],
        },
        "locations_and_hours": {
            "primary_location": {
                "full_address": "100 Main St, Austin, TX 78701",
                "city": "Austin",
                "state": "TX",
                "zip": "78701",
                "phone": "<>",
            },
        },
        "pricing_information": {"summary_line": "From $299 per week"},
        "footer": {
            "email": "<>",
            "social": {"facebook": "https://facebook.com/bobs", "instagram": "<>"},
        },
        "featured_reviews": {
            "review_1": {"reviewer": "Dana", "stars": 5, "excerpt": "Fast drop-off."},
            "review_2": {"reviewer": "Lee", "stars": 4, "excerpt": "Fair price."},
            "items": [
                {"author": "Sam", "rating": 5, "text": "Great crew.", "source": "Yelp"},
            ],
        },
        "photo_gallery": {
            "image_1": {"url": "https://bobsdumpsters.example/yard.jpg"},
            "images": [
                {"url": "https://bobsdumpsters.example/truck.jpg", "alt": "Truck"},
                "https://bobsdumpsters.example/bin.jpg",
            ],
        },
        "services": {
            "service_1": {"title": "10 Yard Dumpster", "included_1": "7-day rental", "included_2": "1 ton"},
            "service_2": {"title": "20 Yard Dumpster"},
        },
        "faqs": {
            "all_questions": {
                "Pricing": [{"question": "Do you charge by weight?", "answer": "Over 1 ton only."}],
                "Delivery": [{"question": "How fast?", "answer": "Same day."}],
            },
        },
    }


# ---------------------------------------------------------------------------
# Route clients
# ---------------------------------------------------------------------------

@pytest.fixture
def make_client(db_session):
    """Build an AsyncClient for a FastAPI app mounting *routers* over db_session.

    Usage:
        async with make_client(intake_router, overrides={get_asset_relocator: lambda: relocator}) as client:
            resp = await client.post(...)
    """
    def _factory(*routers, overrides: dict | None = None) -> AsyncClient:
        test_app = FastAPI()
        register_error_handlers(test_app)
        for router in routers:
            test_app.include_router(router)

        async def _override_get_db():
            yield db_session

        test_app.dependency_overrides[get_db] = _override_get_db
        for dependency, replacement in (overrides or {}).items():
            test_app.dependency_overrides[dependency] = replacement

        return AsyncClient(transport=ASGITransport(app=test_app), base_url="http://testserver")

    return _factory
