"""
Pydantic schemas for project files.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class FileMetaResponse(BaseModel):
    """A file without its content. Create and update never echo the buffer back."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    path: str


class FileResponse(FileMetaResponse):
    # Base64-encoded content
    buffer: Optional[str] = None
