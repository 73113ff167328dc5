"""
User API endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, Response

from app.api.prerequisites import RequestContext, confirm_record_exists, prerequisites
from app.controllers.users import users_controller
from app.models.user import User
from app.schemas.user import UserResponse

router = APIRouter()


@router.get("/users", response_model=List[UserResponse])
async def get_users(ctx: RequestContext = Depends(prerequisites())):
    return await users_controller.get_all(ctx)


@router.get("/users/{id}", response_model=UserResponse)
async def get_user(
    ctx: RequestContext = Depends(prerequisites(
        confirm_record_exists(User, mode="param", request_key="id"),
    )),
):
    return await users_controller.get_one(ctx)


@router.post("/users/login", response_model=UserResponse)
async def login(
    response: Response,
    ctx: RequestContext = Depends(prerequisites()),
):
    """
    Resolve the caller's identity to a user record.

    Creates the record on first login (201); later logins return it (200).
    Every route that checks ownership needs this record to exist.
    """
    user, created = await users_controller.login(ctx)
    response.status_code = 201 if created else 200
    return user
