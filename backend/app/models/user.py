"""
User model.
"""

from sqlalchemy import Column, Integer, String, select

from app.core.database import Base


class User(Base):
    """A user known to the identity provider. Rows are created on first login."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, nullable=False, index=True)

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"

    def user_query(self):
        """A user is its own owner."""
        return select(User).where(User.id == self.id)
