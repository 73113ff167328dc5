"""
Project model.
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, select

from app.core.database import Base
from app.models.user import User


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(500), nullable=False)
    tags = Column(Text, nullable=True)
    description = Column(Text, nullable=True)

    date_created = Column(DateTime(timezone=True), default=datetime.utcnow)
    date_updated = Column(DateTime(timezone=True), default=datetime.utcnow)

    # Set while a published snapshot exists
    published_id = Column(
        Integer,
        ForeignKey("published_projects.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    def __repr__(self):
        return f"<Project(id={self.id}, title='{self.title}', user_id={self.user_id})>"

    def user_query(self):
        return select(User).where(User.id == self.user_id)
