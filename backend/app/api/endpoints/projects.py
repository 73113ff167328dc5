"""
Project API endpoints: CRUD, publishing and export.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, Response

from app.api.prerequisites import (
    RequestContext,
    confirm_record_exists,
    prerequisites,
    validate_creation_permission,
    validate_export_token,
    validate_ownership,
    validate_user,
)
from app.controllers.projects import projects_controller
from app.core.rate_limit import EXPORT_LIMIT, PUBLISH_LIMIT, limiter
from app.models.project import Project
from app.schemas.project import (
    ExportStartResponse,
    ProjectCreate,
    ProjectExportMetadata,
    ProjectResponse,
    ProjectUpdate,
)

router = APIRouter()


def owned_project():
    """Chain for routes acting on ``/projects/{id}`` as its owner."""
    return prerequisites(
        confirm_record_exists(Project, mode="param", request_key="id"),
        validate_user(),
        validate_ownership(),
    )


def exported_project():
    return prerequisites(
        validate_export_token("id"),
        confirm_record_exists(Project, mode="param", request_key="id"),
        authenticate=False,
    )


@router.get("/users/{user_id}/projects", response_model=List[ProjectResponse])
async def get_user_projects(
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(Project, mode="param", request_key="user_id"),
        validate_user(),
        validate_ownership(),
    )),
):
    """List a user's projects, most recently updated first."""
    return await projects_controller.get_all(ctx)


@router.get("/projects/{id}", response_model=ProjectResponse)
async def get_project(ctx: RequestContext = Depends(owned_project())):
    return await projects_controller.get_one(ctx)


@router.post("/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    payload: ProjectCreate,
    ctx: RequestContext = Depends(prerequisites(validate_creation_permission())),
):
    return await projects_controller.create(ctx, payload)


@router.put("/projects/{id}", response_model=ProjectResponse)
async def update_project(
    payload: ProjectUpdate,
    ctx: RequestContext = Depends(owned_project()),
):
    return await projects_controller.update(ctx, payload)


@router.delete("/projects/{id}", status_code=204)
async def delete_project(ctx: RequestContext = Depends(owned_project())):
    """
    Delete a project.

    Unpublishes it first when published. Files are removed with the project;
    published copies of them elsewhere keep their content with ``file_id``
    cleared.
    """
    await projects_controller.delete(ctx)
    return Response(status_code=204)


@router.put("/projects/{id}/publish", response_model=ProjectResponse)
@limiter.limit(PUBLISH_LIMIT)
async def publish_project(
    request: Request,
    ctx: RequestContext = Depends(owned_project()),
):
    """Publish the project, or refresh its existing publication in place."""
    return await projects_controller.publish(ctx)


@router.put("/projects/{id}/unpublish", response_model=ProjectResponse)
@limiter.limit(PUBLISH_LIMIT)
async def unpublish_project(
    request: Request,
    ctx: RequestContext = Depends(owned_project()),
):
    return await projects_controller.unpublish(ctx)


@router.post("/projects/{id}/export/start", response_model=ExportStartResponse)
@limiter.limit(EXPORT_LIMIT)
async def start_project_export(
    request: Request,
    ctx: RequestContext = Depends(owned_project()),
):
    """
    Issue a short-lived export token for the project.

    The token is sent back as ``Authorization: export <token>`` to the
    ``export/metadata`` and ``export/files`` routes.
    """
    return await projects_controller.export_start(ctx)


@router.get("/projects/{id}/export/metadata", response_model=ProjectExportMetadata)
async def get_project_export_metadata(ctx: RequestContext = Depends(exported_project())):
    return await projects_controller.export_metadata(ctx)


@router.get("/projects/{id}/export/files")
async def get_project_export_files(ctx: RequestContext = Depends(exported_project())):
    return await projects_controller.export_files(ctx)
