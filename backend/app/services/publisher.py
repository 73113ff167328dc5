"""
Publishing workflow: snapshot a project into published records, clear the
snapshot again, and remix a snapshot into a new editable project.

Every method only flushes; the caller owns the transaction and commits once
the whole workflow has succeeded.
"""

from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import CacheRegistry
from app.core.config import settings
from app.models.file import File
from app.models.project import Project
from app.models.published_file import PublishedFile
from app.models.published_project import PublishedProject
from app.models.user import User
from app.services.content_cache import PUBLISHED_FILE_CACHE
from app.utils.exceptions import ImplementationError, NotFoundError

REMIX_SUFFIX = " (remix)"


class Publisher:
    """Copy-on-publish / clear-on-unpublish between projects and snapshots."""

    def __init__(self, base_url: Optional[str] = None) -> None:
        self.base_url = (base_url or settings.PUBLISHED_PROJECTS_BASE_URL).rstrip("/")

    def publish_url_for(self, owner: User, published: PublishedProject) -> str:
        return f"{self.base_url}/{owner.name}/{published.id}"

    async def publish(
        self,
        db: AsyncSession,
        project: Project,
        cache: Optional[CacheRegistry] = None,
    ) -> PublishedProject:
        """
        Publish ``project``.

        Re-publishing overwrites the existing snapshot in place: the
        PublishedProject keeps its id and URL, its files are replaced by copies
        of the project's current files.
        """
        owner = await db.get(User, project.user_id)
        if owner is None:
            raise ImplementationError(f"An owning user can't be found for {project!r}")

        published = None
        if project.published_id is not None:
            published = await db.get(PublishedProject, project.published_id)

        if published is None:
            published = PublishedProject()
            db.add(published)

        published.title = project.title
        published.tags = project.tags
        published.description = project.description
        published.date_created = project.date_created
        published.date_updated = project.date_updated
        await db.flush()

        published.publish_url = self.publish_url_for(owner, published)

        await self._clear_published_files(db, published.id, cache)

        files = (
            await db.execute(select(File).where(File.project_id == project.id).order_by(File.id))
        ).scalars().all()
        for source in files:
            db.add(PublishedFile(
                published_id=published.id,
                file_id=source.id,
                path=source.path,
                buffer=source.buffer,
            ))

        project.published_id = published.id
        await db.flush()

        logger.info(f"Published project {project.id} as {published.id} ({len(files)} files)")
        return published

    async def unpublish(
        self,
        db: AsyncSession,
        project: Project,
        cache: Optional[CacheRegistry] = None,
    ) -> None:
        """Delete the snapshot of ``project``; NotFoundError if it isn't published."""
        if project.published_id is None:
            raise NotFoundError(f"Project {project.id} is not published")

        published_id = project.published_id
        await self._clear_published_files(db, published_id, cache)

        project.published_id = None
        await db.flush()

        published = await db.get(PublishedProject, published_id)
        if published is not None:
            await db.delete(published)
            await db.flush()

        logger.info(f"Unpublished project {project.id} (snapshot {published_id})")

    async def remix(
        self,
        db: AsyncSession,
        published: PublishedProject,
        user: User,
        now: Optional[datetime] = None,
    ) -> Project:
        """Copy a published snapshot into a new project owned by ``user``."""
        now = now or datetime.utcnow()

        project = Project(
            title=f"{published.title}{REMIX_SUFFIX}",
            user_id=user.id,
            tags=published.tags,
            description=published.description,
            date_created=now,
            date_updated=now,
        )
        db.add(project)
        await db.flush()

        published_files = (
            await db.execute(
                select(PublishedFile)
                .where(PublishedFile.published_id == published.id)
                .order_by(PublishedFile.id)
            )
        ).scalars().all()
        for published_file in published_files:
            db.add(File(
                path=published_file.path,
                project_id=project.id,
                buffer=published_file.buffer,
            ))
        await db.flush()

        logger.info(
            f"Remixed published project {published.id} into project {project.id} for user {user.id}"
        )
        return project

    async def _clear_published_files(
        self,
        db: AsyncSession,
        published_id: int,
        cache: Optional[CacheRegistry],
    ) -> List[int]:
        ids = list((
            await db.execute(select(PublishedFile.id).where(PublishedFile.published_id == published_id))
        ).scalars().all())
        if not ids:
            return ids

        if cache is not None:
            for published_file_id in ids:
                await cache[PUBLISHED_FILE_CACHE].drop(published_file_id)

        await db.execute(delete(PublishedFile).where(PublishedFile.published_id == published_id))
        return ids


publisher = Publisher()
