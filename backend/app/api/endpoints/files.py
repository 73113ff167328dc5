"""
File API endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, Response

from app.api.prerequisites import (
    RequestContext,
    confirm_record_exists,
    prerequisites,
    track_temporary_file,
    validate_creation_permission,
    validate_ownership,
    validate_user,
)
from app.controllers.files import files_controller
from app.core.rate_limit import FILE_UPLOAD_LIMIT, limiter
from app.models.file import File
from app.models.project import Project
from app.schemas.file import FileMetaResponse, FileResponse

router = APIRouter()

FILE_META_COLUMNS = ["id", "project_id", "path"]


def owned_file():
    return prerequisites(
        confirm_record_exists(File, mode="param", request_key="id", columns=FILE_META_COLUMNS),
        validate_user(),
        validate_ownership(),
    )


def owned_project_files(columns=None):
    return prerequisites(
        confirm_record_exists(File, mode="param", request_key="project_id", columns=columns),
        validate_user(),
        validate_ownership(),
    )


@router.get("/files/{id}")
async def get_file(ctx: RequestContext = Depends(owned_file())):
    """Raw file content as ``application/octet-stream``."""
    return await files_controller.get_one(ctx)


@router.post("/files", response_model=FileMetaResponse)
@limiter.limit(FILE_UPLOAD_LIMIT)
async def upload_file(
    request: Request,
    response: Response,
    ctx: RequestContext = Depends(prerequisites(
        validate_creation_permission("project_id", Project),
        track_temporary_file(),
    )),
):
    """
    Create or replace a file from a multipart upload.

    Form fields: ``path``, ``project_id`` and the ``buffer`` file part. A file
    already stored at ``path`` in the project keeps its id and only has its
    content replaced (200); otherwise a new file is created (201).
    """
    file, created = await files_controller.create(ctx)
    response.status_code = 201 if created else 200
    return file


@router.put("/files/{id}", response_model=FileMetaResponse)
@limiter.limit(FILE_UPLOAD_LIMIT)
async def update_file(
    request: Request,
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(File, mode="param", request_key="id"),
        validate_user(),
        validate_ownership(),
        validate_creation_permission("project_id", Project),
        track_temporary_file(),
    )),
):
    return await files_controller.update(ctx)


@router.delete("/files/{id}", status_code=204)
async def delete_file(ctx: RequestContext = Depends(owned_file())):
    await files_controller.delete(ctx)
    return Response(status_code=204)


@router.get("/projects/{project_id}/files", response_model=List[FileResponse])
async def get_project_files(ctx: RequestContext = Depends(owned_project_files())):
    """Every file of the project with base64-encoded content."""
    return await files_controller.get_all(ctx)


@router.get("/projects/{project_id}/files/meta", response_model=List[FileMetaResponse])
async def get_project_files_meta(
    ctx: RequestContext = Depends(owned_project_files(columns=FILE_META_COLUMNS)),
):
    return await files_controller.get_all_as_meta(ctx)


@router.get("/projects/{project_id}/files/tar")
async def get_project_files_tar(
    ctx: RequestContext = Depends(owned_project_files(columns=FILE_META_COLUMNS)),
):
    """
    Stream the project's files as a tar archive.

    Served as ``application/octet-stream``; entries are named by file path and
    appear in the order their contents become available.
    """
    return await files_controller.get_all_as_tar(ctx)
