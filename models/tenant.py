# models/tenant.py

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class TenantUpdate(BaseModel):
    name: Optional[str] = None
    subscription_tier: Optional[str] = None
    max_users: Optional[int] = Field(None, ge=1)
    max_companies: Optional[int] = Field(None, ge=1)
    settings: Optional[Dict[str, Any]] = None
    status: Optional[str] = None


class TenantCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, pattern="^[a-z0-9-]+$")
    subscription_tier: str = "free"
    max_users: int = Field(10, ge=1)
    max_companies: int = Field(5, ge=1)
    settings: Dict[str, Any] = Field(default_factory=dict)
