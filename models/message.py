# models/message.py

from typing import Optional
from pydantic import BaseModel, Field


class ThreadCreate(BaseModel):
    """Company side opens a thread with one of its vendors."""
    vendor_id: str = Field(..., description="Vendor organization ID")
    subject: Optional[str] = Field(None, description="Thread subject")


class MessageCreate(BaseModel):
    """Post into an existing thread."""
    content: str = Field(..., min_length=1, max_length=10000)
    recipient_organization_id: Optional[str] = Field(
        None,
        description="Defaults to the opposite side of the thread",
    )
