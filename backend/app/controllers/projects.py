"""
Projects controller: CRUD, publishing and export.
"""

from datetime import datetime
from typing import Any, Dict, List

from fastapi.responses import StreamingResponse
from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.orm import load_only

from app.api.prerequisites import RequestContext
from app.controllers.base import BaseController
from app.controllers.files import files_controller
from app.core.config import settings
from app.models.file import File
from app.models.project import Project
from app.models.published_file import PublishedFile
from app.models.published_project import PublishedProject
from app.schemas.project import (
    ExportStartResponse,
    ProjectCreate,
    ProjectExportFile,
    ProjectResponse,
    ProjectUpdate,
)
from app.services.auth_service import create_export_token
from app.services.content_cache import FILE_CACHE
from app.services.publisher import publisher


class ProjectsController(BaseController):
    model = Project
    response_schema = ProjectResponse

    async def format_project(self, ctx: RequestContext, project: Project) -> Dict[str, Any]:
        data = self.format_response_data(project)
        if project.published_id is not None:
            published = await ctx.db.get(PublishedProject, project.published_id)
            data["publish_url"] = published.publish_url if published else None
        return data

    async def get_one(self, ctx: RequestContext) -> Dict[str, Any]:
        return await self.format_project(ctx, ctx.record)

    async def get_all(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        """The matched projects, most recently updated first."""
        projects = sorted(
            ctx.records,
            key=lambda p: (p.date_updated is not None, p.date_updated),
            reverse=True,
        )
        return [await self.format_project(ctx, project) for project in projects]

    async def create(self, ctx: RequestContext, payload: ProjectCreate) -> Dict[str, Any]:
        now = datetime.utcnow()
        data = payload.model_dump()
        data["date_created"] = data.get("date_created") or now
        data["date_updated"] = data.get("date_updated") or now

        project = await super().create(ctx, data)
        return await self.format_project(ctx, project)

    async def update(self, ctx: RequestContext, payload: ProjectUpdate) -> Dict[str, Any]:
        data = payload.model_dump(exclude_unset=True)
        if not data.get("date_updated"):
            data["date_updated"] = datetime.utcnow()

        project = await super().update(ctx, data)
        return await self.format_project(ctx, project)

    async def delete(self, ctx: RequestContext) -> None:
        """
        Delete a project and everything hanging off it.

        An active publication is removed first; published files copied from
        this project's files survive other snapshots with ``file_id`` cleared.
        Files themselves go with the project through the foreign key cascade.
        Nothing is committed until every step has succeeded.
        """
        project = ctx.record

        if project.published_id is not None:
            await publisher.unpublish(ctx.db, project, ctx.cache)

        file_ids = select(File.id).where(File.project_id == project.id)
        await ctx.db.execute(
            update(PublishedFile)
            .where(PublishedFile.file_id.in_(file_ids))
            .values(file_id=None)
        )

        for file_id in (await ctx.db.execute(file_ids)).scalars().all():
            await ctx.cache[FILE_CACHE].drop(file_id)

        await super().delete(ctx, project)

    async def publish(self, ctx: RequestContext) -> Dict[str, Any]:
        project = ctx.record
        await publisher.publish(ctx.db, project, ctx.cache)
        await ctx.db.commit()
        await ctx.db.refresh(project)
        return await self.format_project(ctx, project)

    async def unpublish(self, ctx: RequestContext) -> Dict[str, Any]:
        project = ctx.record
        await publisher.unpublish(ctx.db, project, ctx.cache)
        await ctx.db.commit()
        await ctx.db.refresh(project)
        return await self.format_project(ctx, project)

    async def export_start(self, ctx: RequestContext) -> ExportStartResponse:
        project = ctx.record
        minutes = settings.EXPORT_TOKEN_EXPIRE_MINUTES
        logger.info(f"Export started for project {project.id} by user {ctx.user.id}")
        return ExportStartResponse(
            token=create_export_token(project.id, expires_minutes=minutes),
            expires_in=minutes * 60,
        )

    async def _export_file_records(self, ctx: RequestContext, project: Project) -> List[File]:
        result = await ctx.db.execute(
            select(File)
            .where(File.project_id == project.id)
            .options(load_only(File.id, File.project_id, File.path))
            .order_by(File.id)
        )
        return list(result.scalars().all())

    async def export_metadata(self, ctx: RequestContext) -> Dict[str, Any]:
        project = ctx.record
        files = await self._export_file_records(ctx, project)
        return {
            "project": await self.format_project(ctx, project),
            "files": [ProjectExportFile.model_validate(f).model_dump() for f in files],
        }

    async def export_files(self, ctx: RequestContext) -> StreamingResponse:
        project = ctx.record
        files = await self._export_file_records(ctx, project)
        return files_controller.tar_response(ctx, files, archive_name=project.title)


projects_controller = ProjectsController()
