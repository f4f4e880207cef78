"""
Groups and group memberships.

A group is the unit a rating round is scoped to: a restaurant's round is
complete once every member of the group has rated it in the current quarter.
"""
import enum
import uuid
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship

from ratings_api.core.periods import utcnow
from ratings_api.db.base import Base


class Role(str, enum.Enum):
    ADMIN = "Admin"
    MEMBER = "Member"


class Group(Base):
    __tablename__ = "groups"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    # Deleting a group removes only the group row; memberships are left to the
    # foreign key behaviour of the store.
    memberships = relationship("GroupMembership", back_populates="group", passive_deletes=True)

    def __repr__(self):
        return f"<Group {self.name}>"


class GroupMembership(Base):
    """Links a user to a group with a role. One membership per (user, group)."""
    __tablename__ = "group_memberships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    group_id = Column(String(36), ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(Enum(Role, name="membership_role"), nullable=False, default=Role.MEMBER)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    group = relationship("Group", back_populates="memberships")
    user = relationship("User", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_membership"),
    )

    def __repr__(self):
        return f"<GroupMembership group={self.group_id} user={self.user_id} role={self.role}>"
