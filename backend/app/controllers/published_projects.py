"""
Published projects controller.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select

from app.api.prerequisites import RequestContext
from app.controllers.base import BaseController
from app.controllers.projects import projects_controller
from app.models.published_project import PublishedProject
from app.schemas.published_project import PublishedProjectResponse
from app.services.publisher import publisher


class PublishedProjectsController(BaseController):
    model = PublishedProject
    response_schema = PublishedProjectResponse

    async def get_all(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        published = (
            await ctx.db.execute(select(PublishedProject).order_by(PublishedProject.id))
        ).scalars().all()
        return [self.format_response_data(record) for record in published]

    async def remix(self, ctx: RequestContext, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Copy the matched snapshot into a new project owned by the caller."""
        project = await publisher.remix(ctx.db, ctx.record, ctx.user, now=now)
        await ctx.db.commit()
        await ctx.db.refresh(project)
        return await projects_controller.format_project(ctx, project)


published_projects_controller = PublishedProjectsController()
