# models/company_group.py

from typing import Optional, Dict, Any
from pydantic import BaseModel, Field


class CompanyGroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parent_group_id: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None


class CompanyGroupCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    parent_group_id: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
