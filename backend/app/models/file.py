"""
Project file model.
"""

from sqlalchemy import Column, ForeignKey, Integer, LargeBinary, String, UniqueConstraint, select

from app.core.database import Base
from app.models.project import Project
from app.models.user import User


class File(Base):
    __tablename__ = "files"
    __table_args__ = (
        UniqueConstraint("project_id", "path", name="uq_files_project_id_path"),
    )

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    path = Column(String(1000), nullable=False)
    buffer = Column(LargeBinary, nullable=False)

    def __repr__(self):
        return f"<File(id={self.id}, project_id={self.project_id}, path='{self.path}')>"

    def user_query(self):
        return (
            select(User)
            .join(Project, Project.user_id == User.id)
            .where(Project.id == self.project_id)
        )
