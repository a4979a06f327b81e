from typing import List, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from core.errors import SubjectResolutionError, extract_supabase_error
from core.logging_config import logger
from core.supabase_client import get_supabase_client
from models.enums import UserRole
from models.subject import Subject


bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )


# ============================================================
# IDENTITY RESOLUTION (Supabase: validates JWT + loads users row)
# ============================================================
def load_subject(token: str, client=None) -> Optional[Subject]:
    """
    Validate the token with GoTrue, then build the Subject from the
    `users` row. Role, organization and tenant come from the database,
    never from token metadata.

    Returns None for an unknown/expired token or an unknown user.
    Raises SubjectResolutionError when the identity backend itself fails.
    """
    client = client or get_supabase_client()
    if client is None:
        raise SubjectResolutionError("Supabase client not configured")

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
    except Exception as e:
        logger.info(f"Token rejected by identity provider: {extract_supabase_error(e)}")
        return None

    auth_user = getattr(auth_resp, "user", None) if auth_resp else None
    if not auth_user or not getattr(auth_user, "id", None):
        return None

    # ---------------------------------------------------------
    # Load the users row (authoritative role / org / tenant)
    # ---------------------------------------------------------
    try:
        rows = (
            client.table("users")
            .select("id, email, role, organization_id, tenant_id")
            .eq("id", auth_user.id)
            .limit(1)
            .execute()
        ).data
    except Exception as e:
        raise SubjectResolutionError(f"users lookup failed: {extract_supabase_error(e)}") from e

    if not rows:
        logger.warning(f"Authenticated user {auth_user.id} has no users row")
        return None

    row = rows[0]

    try:
        role = UserRole(row.get("role"))
    except ValueError:
        logger.warning(f"User {auth_user.id} has unknown role {row.get('role')!r}")
        return None

    organization_id = row.get("organization_id")
    tenant_id = row.get("tenant_id")
    if not organization_id or not tenant_id:
        logger.warning(f"User {auth_user.id} is missing organization_id or tenant_id")
        return None

    # ---------------------------------------------------------
    # Optional company group (settings/management only)
    # ---------------------------------------------------------
    company_group_id = None
    try:
        org_rows = (
            client.table("organizations")
            .select("company_group_id")
            .eq("id", organization_id)
            .eq("tenant_id", tenant_id)
            .limit(1)
            .execute()
        ).data
        if org_rows:
            company_group_id = org_rows[0].get("company_group_id")
    except Exception as e:
        raise SubjectResolutionError(f"organizations lookup failed: {extract_supabase_error(e)}") from e

    return Subject(
        id=str(row.get("id") or auth_user.id),
        email=row.get("email") or getattr(auth_user, "email", None),
        role=role,
        organization_id=str(organization_id),
        tenant_id=str(tenant_id),
        company_group_id=str(company_group_id) if company_group_id else None,
    )


def resolve_subject(token: Optional[str], client=None) -> Optional[Subject]:
    """None means unauthenticated. Backend failures are logged and also yield None."""
    if not token:
        return None
    try:
        return load_subject(token, client)
    except SubjectResolutionError as e:
        logger.warning(f"{SubjectResolutionError.code}: {e}")
        return None


# ============================================================
# FastAPI dependencies
# ============================================================
def get_current_subject(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Subject:
    subject = resolve_subject(credentials.credentials if credentials else None)
    if subject is None:
        raise _unauthorized()
    return subject


def requires_role(allowed_roles: List[UserRole]):
    """Role check for routes that are gated before any record is fetched."""

    def checker(subject: Subject = Depends(get_current_subject)) -> Subject:
        if subject.role not in allowed_roles:
            raise HTTPException(status_code=403, detail="Access denied")
        return subject

    return checker
