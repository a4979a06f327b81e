# models/resource.py

from typing import Optional
from pydantic import BaseModel, ConfigDict

from models.enums import ResourceKind


# ============================================================
# RESOURCE DESCRIPTOR: policy-relevant projection of a record
# ============================================================
class ResourceDescriptor(BaseModel):
    """
    Normalized view of any access-controlled row.

    owner_organization_id is None only for tenant-wide kinds
    (tenants, company groups); builders enforce that.
    """

    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    tenant_id: str
    owner_organization_id: Optional[str] = None
    vendor_organization_id: Optional[str] = None
    is_shared: bool = False
    creator_id: Optional[str] = None
    resource_id: Optional[str] = None  # None for prospective (CREATE) descriptors
