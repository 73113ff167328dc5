"""
Pydantic schemas for projects.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    user_id: int
    tags: Optional[str] = None
    description: Optional[str] = None
    date_created: Optional[datetime] = None
    date_updated: Optional[datetime] = None


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    tags: Optional[str] = None
    description: Optional[str] = None
    date_updated: Optional[datetime] = None


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    tags: Optional[str] = None
    description: Optional[str] = None
    date_created: Optional[datetime] = None
    date_updated: Optional[datetime] = None
    published_id: Optional[int] = None
    publish_url: Optional[str] = None


class ExportStartResponse(BaseModel):
    token: str
    expires_in: int


class ProjectExportFile(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    path: str


class ProjectExportMetadata(BaseModel):
    project: ProjectResponse
    files: List[ProjectExportFile]
