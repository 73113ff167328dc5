"""
Pydantic schemas for published projects.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PublishedProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    tags: Optional[str] = None
    description: Optional[str] = None
    publish_url: Optional[str] = None
    date_created: Optional[datetime] = None
    date_updated: Optional[datetime] = None
