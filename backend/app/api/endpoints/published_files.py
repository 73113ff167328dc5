"""
Published file API endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends

from app.api.prerequisites import RequestContext, confirm_record_exists, prerequisites
from app.controllers.published_files import published_files_controller
from app.models.published_file import PublishedFile
from app.schemas.published_file import PublishedFileMetaResponse

router = APIRouter()


@router.get(
    "/publishedProjects/{published_id}/publishedFiles",
    response_model=List[PublishedFileMetaResponse],
)
async def get_published_files(
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(
            PublishedFile,
            mode="param",
            request_key="published_id",
            columns=["id", "published_id", "file_id", "path"],
        ),
    )),
):
    return await published_files_controller.get_all(ctx)


@router.get("/publishedFiles/{id}")
async def get_published_file(
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(PublishedFile, mode="param", request_key="id"),
    )),
):
    """Raw published file content as ``application/octet-stream``."""
    return await published_files_controller.get_one(ctx)
