# models/relationship.py

from pydantic import BaseModel, ConfigDict


class RelationshipQuery(BaseModel):
    """
    The (company, vendor, tenant) triple the oracle is asked about.
    Mirrors one `vendor_relationships` edge; only status 'active' counts.
    """

    model_config = ConfigDict(frozen=True)

    company_id: str
    vendor_id: str
    tenant_id: str
