"""
Published file model (copy of a project file taken at publish time).
"""

from sqlalchemy import Column, ForeignKey, Integer, LargeBinary, String, select

from app.core.database import Base
from app.models.project import Project
from app.models.user import User


class PublishedFile(Base):
    __tablename__ = "published_files"

    id = Column(Integer, primary_key=True)
    published_id = Column(
        Integer,
        ForeignKey("published_projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Back-reference to the file this was copied from; nulled when that file is deleted
    file_id = Column(Integer, ForeignKey("files.id", ondelete="SET NULL"), nullable=True, index=True)

    path = Column(String(1000), nullable=False)
    buffer = Column(LargeBinary, nullable=False)

    def __repr__(self):
        return f"<PublishedFile(id={self.id}, published_id={self.published_id}, path='{self.path}')>"

    def user_query(self):
        return (
            select(User)
            .join(Project, Project.user_id == User.id)
            .where(Project.published_id == self.published_id)
        )
