"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env from the project root regardless of CWD
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./roma_crm.db"

    # AI
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # Auth / JWT (tokens are issued by the identity provider, verified here)
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # Webflow CMS
    webflow_api_token: str = ""
    webflow_api_base: str = "https://api.webflow.com/v2"
    webflow_site_id: str = ""
    webflow_profiles_collection_id: str = ""
    webflow_services_collection_id: str = ""
    webflow_faqs_collection_id: str = ""
    webflow_locations_collection_id: str = ""
    webflow_reviews_collection_id: str = ""
    webflow_timeout_seconds: float = 30.0

    # Object storage (Supabase Storage REST)
    supabase_url: str = ""
    supabase_service_key: str = ""
    storage_bucket: str = "media"

    # Asset relocation
    image_proxy_url: str = "https://images.weserv.nl/"
    asset_fetch_timeout_seconds: float = 10.0

    # CORS / Frontend
    cors_origins: str = "http://localhost:3000"
    profile_base_url: str = "https://eyesai.ai/profiles"

    # General
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] to allow any origin.
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def webflow_child_collections(self) -> dict[str, str]:
        """Configured child collection ids keyed by content kind."""
        collections = {
            "services": self.webflow_services_collection_id,
            "faqs": self.webflow_faqs_collection_id,
            "locations": self.webflow_locations_collection_id,
            "reviews": self.webflow_reviews_collection_id,
        }
        return {kind: cid for kind, cid in collections.items() if cid}


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
