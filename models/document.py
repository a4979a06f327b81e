# models/document.py

from typing import Optional
from pydantic import BaseModel, Field, field_validator


# ======================================================
# UPDATE / SHARE
# ======================================================

class DocumentUpdate(BaseModel):
    name: Optional[str] = Field(None, description="New display name")
    description: Optional[str] = None
    category: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name cannot be blank")
        return v.strip() if v else v


class DocumentShareRequest(BaseModel):
    is_shared: bool = Field(..., description="Expose the document to its vendor organization")
