# models/subject.py

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from models.enums import UserRole


# ============================================================
# SUBJECT: the authenticated actor for one request
# ============================================================
class Subject(BaseModel):
    """
    Built fresh per request from the Supabase session plus a `users` row
    lookup. Never cached across requests and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    role: UserRole
    organization_id: str
    tenant_id: str
    company_group_id: Optional[str] = None   # settings/management only
    email: Optional[str] = Field(None, description="Informational; not used for decisions")
