"""
Database models for the publishing API.
"""

from .user import User
from .project import Project
from .file import File
from .published_project import PublishedProject
from .published_file import PublishedFile

__all__ = [
    "User",
    "Project",
    "File",
    "PublishedProject",
    "PublishedFile",
]
