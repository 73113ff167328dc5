"""
Prerequisite chains run before route handlers.

A chain is an ordered list of steps turned into a single FastAPI dependency.
Each step receives the shared ``RequestContext`` and either fills in part of it
(matched records, authenticated user, temporary upload path) or raises, which
aborts the request before the handler runs. Steps always execute in the order
they are declared: existence checks must precede ownership checks, and
authentication must precede ownership checks.
"""

import json
import os
import re
import tempfile
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import aiofiles
from fastapi import Depends, Request
from loguru import logger
from sqlalchemy import Integer, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import load_only
from starlette.datastructures import UploadFile

from app.core.cache import CacheRegistry
from app.core.database import get_db
from app.models.project import Project
from app.models.user import User
from app.services.auth_service import export_project_id, get_credentials
from app.services.content_cache import get_cache
from app.utils.exceptions import (
    AuthenticationError,
    ImplementationError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)


@dataclass
class RequestContext:
    """State shared by the prerequisite steps and the handler of one request."""

    request: Request
    db: AsyncSession
    cache: CacheRegistry
    credentials: Optional[Dict[str, Any]] = None
    params: Dict[str, Any] = field(default_factory=dict)
    payload: Dict[str, Any] = field(default_factory=dict)
    records: List[Any] = field(default_factory=list)
    user: Optional[User] = None
    tmp_file: Optional[str] = None

    @property
    def record(self) -> Any:
        return self.records[0]


Prerequisite = Callable[[RequestContext], Awaitable[None]]

_INTEGER_RE = re.compile(r"-?[0-9]+", re.ASCII)


def _coerce(model, column_name: str, value: Any) -> Any:
    """Convert a raw path/payload value to the column's type, rejecting malformed ids."""
    column = model.__table__.columns.get(column_name)
    if column is None:
        raise ImplementationError(f"{model.__name__} has no column '{column_name}'")

    if isinstance(column.type, Integer):
        if isinstance(value, bool):
            raise ValidationError("must be a number", field=column_name)
        if isinstance(value, int):
            return value
        text = str(value).strip() if value is not None else ""
        if not _INTEGER_RE.fullmatch(text):
            raise ValidationError("must be a number", field=column_name)
        return int(text)

    return value


def confirm_record_exists(
    model,
    *,
    mode: Optional[str] = None,
    request_key: Optional[str] = None,
    database_key: Optional[str] = None,
    columns: Optional[Sequence[str]] = None,
) -> Prerequisite:
    """
    Fetch every ``model`` row matching a path parameter or payload field.

    Args:
        model: SQLAlchemy model to query
        mode: ``"param"`` reads ``request_key`` from the path, anything else
            from the payload
        request_key: name of the path parameter / payload field; when omitted
            all rows are matched
        database_key: column compared against the value (defaults to ``request_key``)
        columns: load only these columns

    Sets ``ctx.records``; raises NotFoundError when nothing matches.
    """
    database_key = database_key or request_key

    async def confirm(ctx: RequestContext) -> None:
        query = select(model)

        if request_key:
            source = ctx.params if mode == "param" else ctx.payload
            value = _coerce(model, database_key, source.get(request_key))
            query = query.where(getattr(model, database_key) == value)

        if columns:
            query = query.options(load_only(*[getattr(model, c) for c in columns]))

        result = await ctx.db.execute(query.order_by(model.id))
        records = list(result.scalars().all())
        if not records:
            raise NotFoundError(f"{model.__name__} not found")

        ctx.records = records

    return confirm


async def _authenticated_user(ctx: RequestContext) -> User:
    username = (ctx.credentials or {}).get("username")
    result = await ctx.db.execute(select(User).where(User.name == username))
    user = result.scalars().first()
    if user is None:
        # Our auth layer let through an identity with no user row
        raise ImplementationError("authenticated user doesn't exist")
    return user


def validate_user() -> Prerequisite:
    """Resolve the authenticated identity to its User row. Sets ``ctx.user``."""

    async def validate(ctx: RequestContext) -> None:
        ctx.user = await _authenticated_user(ctx)
        ctx.request.state.user = ctx.user

    return validate


def validate_ownership() -> Prerequisite:
    """Ensure the authenticated user owns the first matched record."""

    async def validate(ctx: RequestContext) -> None:
        resource = ctx.record
        if isinstance(resource, User):
            owner = resource
        else:
            owner = (await ctx.db.execute(resource.user_query())).scalars().first()
            if owner is None:
                raise ImplementationError(f"An owning user can't be found for {resource!r}")

        if owner.id != ctx.user.id:
            raise UnauthorizedError("User doesn't own the resource requested")

    return validate


def validate_creation_permission(foreign_key: Optional[str] = None, model=None) -> Prerequisite:
    """
    Ensure the authenticated user may create a resource from the payload.

    Without ``foreign_key`` the payload's ``user_id`` must be the user's id.
    Otherwise the ``model`` row referenced by ``payload[foreign_key]`` must
    exist and belong to the user.
    """

    async def validate(ctx: RequestContext) -> None:
        user = await _authenticated_user(ctx)
        ctx.user = user
        ctx.request.state.user = user

        if not foreign_key:
            user_id = _coerce(User, "id", ctx.payload.get("user_id"))
            if user.id != user_id:
                raise UnauthorizedError("User doesn't own the resource being referenced")
            return

        reference = _coerce(model, "id", ctx.payload.get(foreign_key))
        record = await ctx.db.get(model, reference)
        if record is None:
            raise NotFoundError("Foreign key doesn't reference an existing record")

        if user.id != record.user_id:
            raise UnauthorizedError("User doesn't own the resource being referenced")

    return validate


def validate_export_token(request_key: str = "id") -> Prerequisite:
    """
    Authenticate with an export token instead of a user token.

    The token must be valid and issued for the project named by the
    ``request_key`` path parameter.
    """

    async def validate(ctx: RequestContext) -> None:
        granted = export_project_id(ctx.request.headers.get("authorization"))
        requested = _coerce(Project, "id", ctx.params.get(request_key))
        if granted != requested:
            raise AuthenticationError("Export token was issued for a different project")

    return validate


def track_temporary_file() -> Prerequisite:
    """
    Spool the uploaded ``buffer`` to a temporary file.

    The path is kept on ``ctx.tmp_file`` for the handler and on
    ``request.state`` for the duration of the request; the chain removes the
    file once the request completes.
    """

    async def track(ctx: RequestContext) -> None:
        upload = ctx.payload.get("buffer")
        if not isinstance(upload, UploadFile):
            raise ValidationError("a file upload is required", field="buffer")

        await upload.seek(0)
        data = await upload.read()

        fd, path = tempfile.mkstemp(prefix="publish_upload_")
        os.close(fd)
        ctx.tmp_file = path
        ctx.request.state.tmp_file = path

        async with aiofiles.open(path, "wb") as tmp:
            await tmp.write(data)

    return track


def _safe_unlink(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning(f"Failed to remove temp file {path}: {exc}")


async def _read_payload(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.body()
        if not body:
            return {}
        try:
            data = json.loads(body)
        except ValueError:
            raise ValidationError("request body is not valid JSON")
        return data if isinstance(data, dict) else {}
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        return dict(form)
    return {}


def prerequisites(*steps: Prerequisite, authenticate: bool = True):
    """
    Build a dependency running ``steps`` in order and yielding the context.

    With ``authenticate`` the request must carry a valid user token; routes
    that authenticate another way (export tokens) pass ``authenticate=False``.
    """

    if authenticate:
        async def dependency(
            request: Request,
            db: AsyncSession = Depends(get_db),
            cache: CacheRegistry = Depends(get_cache),
            credentials: Dict[str, Any] = Depends(get_credentials),
        ):
            ctx = RequestContext(
                request=request,
                db=db,
                cache=cache,
                credentials=credentials,
                params=dict(request.path_params),
                payload=await _read_payload(request),
            )
            try:
                for step in steps:
                    await step(ctx)
                yield ctx
            finally:
                if ctx.tmp_file:
                    _safe_unlink(ctx.tmp_file)
    else:
        async def dependency(
            request: Request,
            db: AsyncSession = Depends(get_db),
            cache: CacheRegistry = Depends(get_cache),
        ):
            ctx = RequestContext(
                request=request,
                db=db,
                cache=cache,
                params=dict(request.path_params),
                payload=await _read_payload(request),
            )
            try:
                for step in steps:
                    await step(ctx)
                yield ctx
            finally:
                if ctx.tmp_file:
                    _safe_unlink(ctx.tmp_file)

    return dependency
