"""
Published project model (read-only snapshot of a project).
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, select

from app.core.database import Base
from app.models.project import Project
from app.models.user import User


class PublishedProject(Base):
    __tablename__ = "published_projects"

    id = Column(Integer, primary_key=True)

    title = Column(String(500), nullable=False)
    tags = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    publish_url = Column(String(1000), nullable=True)

    date_created = Column(DateTime(timezone=True), default=datetime.utcnow)
    date_updated = Column(DateTime(timezone=True), default=datetime.utcnow)

    def __repr__(self):
        return f"<PublishedProject(id={self.id}, title='{self.title}')>"

    def user_query(self):
        """Owner of the project this snapshot was published from."""
        return (
            select(User)
            .join(Project, Project.user_id == User.id)
            .where(Project.published_id == self.id)
        )
