from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Vendor Governance Portal API"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = None

    PORTAL_DOMAINS: List[str] = [
        "http://localhost:3000",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Primary DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # -------------------------------------------------
    # Access control
    # -------------------------------------------------
    RELATIONSHIP_LOOKUP_TIMEOUT_SECONDS: float = Field(
        2.0,
        gt=0,
        description="Upper bound for one vendor_relationships lookup; on expiry the check denies",
    )

    # -------------------------------------------------
    # Audit trail
    # -------------------------------------------------
    AUDIT_LOG_TABLE: str = "audit_logs"
    DOCUMENT_ACCESS_LOG_TABLE: str = "document_access_logs"
    AUDIT_LOG_VIEWS: bool = Field(
        True,
        description="Write allowed VIEW decisions too (denials and other actions are always written)",
    )

    # -------------------------------------------------
    # Storage
    # -------------------------------------------------
    DOCUMENTS_BUCKET: str = "documents"
    SIGNED_URL_TTL_SECONDS: int = 3600

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    model_config = SettingsConfigDict(case_sensitive=True)


def build_cors_origins(config: Settings) -> List[str]:
    """Deployed frontend (scheme added if missing) plus portal domains, deduplicated."""
    origins = {d.rstrip("/") for d in config.PORTAL_DOMAINS}
    if config.FRONTEND_DOMAIN:
        domain = config.FRONTEND_DOMAIN
        if not domain.startswith("http"):
            domain = f"https://{domain}"
        origins.add(domain.rstrip("/"))
    return sorted(origins)


settings = Settings()
settings.BACKEND_CORS_ORIGINS = build_cors_origins(settings)
