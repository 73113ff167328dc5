"""
Main API router configuration.
"""

from fastapi import APIRouter
from app.api.endpoints import files, projects, published_files, published_projects, users

api_router = APIRouter()

# Resource paths nest across modules (/users/{id}/projects, /projects/{id}/files),
# so routers carry full paths instead of prefixes
api_router.include_router(users.router, tags=["users"])
api_router.include_router(projects.router, tags=["projects"])
api_router.include_router(files.router, tags=["files"])
api_router.include_router(published_projects.router, tags=["published projects"])
api_router.include_router(published_files.router, tags=["published files"])
