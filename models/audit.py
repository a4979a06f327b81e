# models/audit.py

from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


# ======================================================
# REQUEST CONTEXT carried into every audit entry
# ======================================================
class AccessContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None


# ======================================================
# AUDIT LOG ROW (audit_logs table)
# ======================================================
class AccessLogEntry(BaseModel):
    """
    One row of `audit_logs`.
    action is "<kind>.<action>", e.g. "document.download".
    """

    user_id: Optional[str] = None
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_method: Optional[str] = None
    request_path: Optional[str] = None
    status_code: Optional[int] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
