import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship

from ratings_api.core.periods import utcnow
from ratings_api.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(100), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    color = Column(String(20), nullable=True)  # Display color shown next to the user's ratings
    created_at = Column(DateTime, default=utcnow)

    memberships = relationship("GroupMembership", back_populates="user", cascade="all, delete-orphan")
    push_subscriptions = relationship("PushSubscription", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.username}>"
