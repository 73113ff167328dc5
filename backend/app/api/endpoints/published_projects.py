"""
Published project API endpoints.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request

from app.api.prerequisites import (
    RequestContext,
    confirm_record_exists,
    prerequisites,
    validate_user,
)
from app.controllers.published_projects import published_projects_controller
from app.core.rate_limit import REMIX_LIMIT, limiter
from app.models.published_project import PublishedProject
from app.schemas.project import ProjectResponse
from app.schemas.published_project import PublishedProjectResponse

router = APIRouter()


@router.get("/publishedProjects", response_model=List[PublishedProjectResponse])
async def get_published_projects(ctx: RequestContext = Depends(prerequisites())):
    return await published_projects_controller.get_all(ctx)


@router.get("/publishedProjects/{id}", response_model=PublishedProjectResponse)
async def get_published_project(
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(PublishedProject, mode="param", request_key="id"),
    )),
):
    return await published_projects_controller.get_one(ctx)


@router.put("/publishedProjects/{id}/remix", response_model=ProjectResponse)
@limiter.limit(REMIX_LIMIT)
async def remix_published_project(
    request: Request,
    now: Optional[datetime] = Query(default=None),
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(PublishedProject, mode="param", request_key="id"),
        validate_user(),
    )),
):
    """
    Copy a published project into a new project owned by the caller.

    The copy is titled ``"<title> (remix)"``; ``now`` sets its creation and
    update dates and defaults to the current time.
    """
    return await published_projects_controller.remix(ctx, now=now)
