# core/errors.py

from typing import Optional
from fastapi import HTTPException

from core.logging_config import logger


# ============================================================
# Access-control exceptions
# ============================================================
class AccessControlError(Exception):
    """Base for failures that happen *before* a policy decision exists."""

    code = "ACCESS_CONTROL_ERROR"


class MalformedResourceError(AccessControlError):
    """
    A persisted record is missing a field the policy depends on.
    Always a data-integrity bug (500), never an allow or a deny.
    """

    code = "MALFORMED_RESOURCE"

    def __init__(self, kind: str, field: str, resource_id: Optional[str] = None):
        self.kind = kind
        self.field = field
        self.resource_id = resource_id
        super().__init__(
            f"{kind} record {resource_id or '<unknown>'} is missing required field '{field}'"
        )


class SubjectResolutionError(AccessControlError):
    """Identity lookup failed upstream; surfaced to clients as 401."""

    code = "SUBJECT_RESOLUTION_FAILED"


# ============================================================
# Supabase error helpers
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue / PostgREST APIError
    message = getattr(error, "message", None)
    if message:
        return str(message)

    # Case 2: errors with args (common)
    if getattr(error, "args", None):
        return str(error.args[0])

    # Case 3: plain string fallback
    return str(error) or "Unknown Supabase error"


def handle_supabase_error(error: Exception, operation: str = "Database operation", status_code: int = 500) -> HTTPException:
    """
    Handle Supabase errors with consistent formatting.
    Returns HTTPException (doesn't raise) so caller can customize or re-raise.

    Args:
        error: The exception that occurred
        operation: Description of what operation failed (e.g., "Failed to update payment")
        status_code: HTTP status code (default 500)

    Returns:
        HTTPException with standardized error message
    """
    error_detail = extract_supabase_error(error)
    logger.error(f"{operation}: {error_detail}")

    # Provide user-friendly messages for common errors
    error_lower = error_detail.lower()
    if "duplicate" in error_lower or "unique" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Record already exists")
    elif "foreign key" in error_lower:
        return HTTPException(status_code=400, detail=f"{operation}: Invalid reference")
    elif "not found" in error_lower or "does not exist" in error_lower:
        return HTTPException(status_code=404, detail=f"{operation}: Resource not found")
    else:
        return HTTPException(status_code=status_code, detail=f"{operation} failed")


def access_denied() -> HTTPException:
    """Generic 403. The real reason stays in the audit trail."""
    return HTTPException(status_code=403, detail="Access denied")


def not_found(what: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{what} not found")
