"""
Users controller.
"""

from typing import Any, Dict, List, Tuple

from loguru import logger
from sqlalchemy import select

from app.api.prerequisites import RequestContext
from app.controllers.base import BaseController
from app.models.user import User
from app.schemas.user import UserResponse
from app.utils.exceptions import AuthenticationError


class UsersController(BaseController):
    model = User
    response_schema = UserResponse

    async def get_all(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        users = (await ctx.db.execute(select(User).order_by(User.id))).scalars().all()
        return [self.format_response_data(user) for user in users]

    async def login(self, ctx: RequestContext) -> Tuple[Dict[str, Any], bool]:
        """
        Find the user row for the authenticated identity, creating it on first login.

        Returns the user and whether it was created.
        """
        username = (ctx.credentials or {}).get("username")
        if not username:
            raise AuthenticationError("Identity provider returned no username")

        user = (await ctx.db.execute(select(User).where(User.name == username))).scalars().first()
        if user is not None:
            return self.format_response_data(user), False

        user = await self.create(ctx, {"name": username})
        logger.info(f"First login for {username}")
        return self.format_response_data(user), True


users_controller = UsersController()
