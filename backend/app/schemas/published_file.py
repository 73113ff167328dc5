"""
Pydantic schemas for published files.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class PublishedFileMetaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    published_id: int
    file_id: Optional[int] = None
    path: str
