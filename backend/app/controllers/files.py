"""
Files controller.

File contents are always read through the ``file`` cache, so every write
drops the cached entry for the file it touches.
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiofiles
from fastapi.responses import Response, StreamingResponse
from loguru import logger
from sqlalchemy import select, update

from app.api.prerequisites import RequestContext
from app.controllers.base import BaseController
from app.models.file import File
from app.models.published_file import PublishedFile
from app.schemas.file import FileMetaResponse, FileResponse
from app.services.content_cache import FILE_CACHE
from app.services.tar_stream import TAR_MEDIA_TYPE, stream_tar
from app.utils.exceptions import ValidationError
from app.utils.formatters import encode_buffer, sanitize_archive_basename


def _payload_path(ctx: RequestContext, required: bool = True) -> Optional[str]:
    path = ctx.payload.get("path")
    if path is None and not required:
        return None
    if not isinstance(path, str) or not path.strip():
        raise ValidationError("must be a non-empty string", field="path")
    return path


async def _uploaded_buffer(ctx: RequestContext) -> bytes:
    async with aiofiles.open(ctx.tmp_file, "rb") as tmp:
        return await tmp.read()


class FilesController(BaseController):
    model = File
    response_schema = FileResponse

    def format_response_data(self, record: File) -> Dict[str, Any]:
        return FileResponse(
            id=record.id,
            project_id=record.project_id,
            path=record.path,
            buffer=encode_buffer(record.buffer),
        ).model_dump()

    def format_meta(self, record: File) -> Dict[str, Any]:
        return FileMetaResponse.model_validate(record).model_dump()

    async def get_one(self, ctx: RequestContext) -> Response:
        content = await ctx.cache[FILE_CACHE].run(ctx.record.id)
        return Response(content=content, media_type="application/octet-stream")

    async def get_all_as_meta(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        return [self.format_meta(record) for record in ctx.records]

    async def create(self, ctx: RequestContext) -> Tuple[Dict[str, Any], bool]:
        """
        Upsert a file by ``(project_id, path)``.

        An existing file only has its buffer replaced. Returns the file
        metadata and whether a new row was inserted.
        """
        path = _payload_path(ctx)
        project_id = int(ctx.payload["project_id"])
        buffer = await _uploaded_buffer(ctx)

        existing = (
            await ctx.db.execute(
                select(File).where(File.project_id == project_id, File.path == path)
            )
        ).scalars().first()

        if existing is None:
            record = await super().create(
                ctx, {"project_id": project_id, "path": path, "buffer": buffer}
            )
            return self.format_meta(record), True

        await ctx.cache[FILE_CACHE].drop(existing.id)
        existing.buffer = buffer
        await ctx.db.commit()
        await ctx.db.refresh(existing)
        logger.info(f"Replaced content of File {existing.id}")
        return self.format_meta(existing), False

    async def update(self, ctx: RequestContext) -> Dict[str, Any]:
        data = {
            "project_id": int(ctx.payload["project_id"]),
            "buffer": await _uploaded_buffer(ctx),
        }
        path = _payload_path(ctx, required=False)
        if path is not None:
            data["path"] = path

        await ctx.cache[FILE_CACHE].drop(ctx.record.id)
        record = await super().update(ctx, data)
        return self.format_meta(record)

    async def delete(self, ctx: RequestContext) -> None:
        record = ctx.record
        # Published copies outlive the file they were copied from
        await ctx.db.execute(
            update(PublishedFile)
            .where(PublishedFile.file_id == record.id)
            .values(file_id=None)
        )
        await ctx.cache[FILE_CACHE].drop(record.id)
        await super().delete(ctx, record)

    def tar_response(
        self,
        ctx: RequestContext,
        records: Sequence[File],
        archive_name: Optional[str] = None,
    ) -> StreamingResponse:
        """Stream ``records`` as a tar archive, contents fetched through the cache."""
        entries = [(record.path, record.id) for record in records]
        filename = sanitize_archive_basename(archive_name or "", fallback="files") + ".tar"
        return StreamingResponse(
            stream_tar(entries, ctx.cache[FILE_CACHE].run),
            media_type=TAR_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    async def get_all_as_tar(self, ctx: RequestContext) -> StreamingResponse:
        return self.tar_response(ctx, ctx.records, archive_name=f"project-{ctx.record.project_id}")


files_controller = FilesController()
