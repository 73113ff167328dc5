"""
Published files controller.
"""

from fastapi.responses import Response

from app.api.prerequisites import RequestContext
from app.controllers.base import BaseController
from app.models.published_file import PublishedFile
from app.schemas.published_file import PublishedFileMetaResponse
from app.services.content_cache import PUBLISHED_FILE_CACHE


class PublishedFilesController(BaseController):
    model = PublishedFile
    response_schema = PublishedFileMetaResponse

    async def get_one(self, ctx: RequestContext) -> Response:
        content = await ctx.cache[PUBLISHED_FILE_CACHE].run(ctx.record.id)
        return Response(content=content, media_type="application/octet-stream")


published_files_controller = PublishedFilesController()
