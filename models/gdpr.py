# models/gdpr.py

from typing import Optional
from pydantic import BaseModel, Field


class AccountDeleteRequest(BaseModel):
    user_id: Optional[str] = Field(None, description="Defaults to the caller's own account")
    confirm: Optional[str] = Field(None, description='Must be exactly "DELETE"')


class ConsentRequest(BaseModel):
    version: str = Field(..., min_length=1, description="Privacy policy version accepted")
