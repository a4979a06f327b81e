# models/webhook.py

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebhookRead(BaseModel):
    """Never includes the signing secret."""

    model_config = ConfigDict(extra="ignore")

    id: str
    url: str
    events: List[str] = []
    enabled: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WebhookUpdate(BaseModel):
    url: Optional[str] = None
    events: Optional[List[str]] = None
    enabled: Optional[bool] = None


class WebhookCreate(BaseModel):
    url: str = Field(..., description="HTTPS endpoint that receives events")
    events: List[str] = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def http_url(cls, v):
        v = v.strip()
        if not v.startswith(("https://", "http://")):
            raise ValueError("url must be an http(s) URL")
        return v
