"""
Shared read/create/update/delete behaviour for resource controllers.
"""

from typing import Any, Dict, List, Optional, Type

from loguru import logger
from pydantic import BaseModel

from app.api.prerequisites import RequestContext


class BaseController:
    """
    CRUD over one model, working on the records a prerequisite chain matched.

    Subclasses set ``model`` and ``response_schema``, and override
    ``format_request_data`` / ``format_response_data`` or whole operations.
    Overrides that only add steps call back into these methods explicitly.
    """

    model: Type = None
    response_schema: Type[BaseModel] = None

    def format_request_data(self, ctx: RequestContext, data: Dict[str, Any]) -> Dict[str, Any]:
        return dict(data)

    def format_response_data(self, record: Any) -> Dict[str, Any]:
        return self.response_schema.model_validate(record).model_dump(mode="json")

    async def get_one(self, ctx: RequestContext) -> Dict[str, Any]:
        return self.format_response_data(ctx.record)

    async def get_all(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        return [self.format_response_data(record) for record in ctx.records]

    async def create(self, ctx: RequestContext, data: Dict[str, Any]) -> Any:
        record = self.model(**self.format_request_data(ctx, data))
        ctx.db.add(record)
        await ctx.db.commit()
        await ctx.db.refresh(record)
        logger.info(f"Created {self.model.__name__} {record.id}")
        return record

    async def update(self, ctx: RequestContext, data: Dict[str, Any]) -> Any:
        record = ctx.record
        for key, value in self.format_request_data(ctx, data).items():
            setattr(record, key, value)
        await ctx.db.commit()
        await ctx.db.refresh(record)
        return record

    async def delete(self, ctx: RequestContext, record: Optional[Any] = None) -> None:
        record = record if record is not None else ctx.record
        record_id = record.id
        await ctx.db.delete(record)
        await ctx.db.commit()
        logger.info(f"Deleted {self.model.__name__} {record_id}")
