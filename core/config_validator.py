# core/config_validator.py

from typing import List
from core.config import settings
from core.logging_config import logger

# Identity, records and vendor relationships all live in Supabase.
# Without these the portal cannot resolve a subject, so it cannot allow anything.
REQUIRED_SETTINGS = ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY")

RECOMMENDED_LOOKUP_CEILING_SECONDS = 2.0


def validate_required_config() -> List[str]:
    """Names of required settings that are unset."""
    return [name for name in REQUIRED_SETTINGS if not getattr(settings, name, None)]


def validate_optional_config() -> List[str]:
    """
    Settings that are legal but weaken the portal.
    Each entry is a human-readable warning.
    """
    warnings = []

    timeout = settings.RELATIONSHIP_LOOKUP_TIMEOUT_SECONDS
    if timeout > RECOMMENDED_LOOKUP_CEILING_SECONDS:
        warnings.append(
            f"RELATIONSHIP_LOOKUP_TIMEOUT_SECONDS={timeout} exceeds the "
            f"recommended {RECOMMENDED_LOOKUP_CEILING_SECONDS}s ceiling"
        )

    if not settings.AUDIT_LOG_VIEWS:
        warnings.append("AUDIT_LOG_VIEWS disabled: allowed views will not be audited")

    if settings.SIGNED_URL_TTL_SECONDS > 24 * 3600:
        warnings.append(
            f"SIGNED_URL_TTL_SECONDS={settings.SIGNED_URL_TTL_SECONDS} keeps download links alive for over a day"
        )

    return warnings


def validate_config_on_startup():
    """
    Fail startup on missing required settings, log the rest.
    """
    missing = validate_required_config()
    if missing:
        message = f"Portal cannot start, missing: {', '.join(missing)}"
        logger.error(message)
        raise RuntimeError(message)

    for warning in validate_optional_config():
        logger.warning(f"Configuration warning: {warning}")

    logger.info("Portal configuration OK")
