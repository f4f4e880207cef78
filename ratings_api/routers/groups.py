"""
Group creation, joining and membership management.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ratings_api.core.deps import get_current_user, require_self
from ratings_api.db.session import get_db
from ratings_api.models.user import User
from ratings_api.schemas.group import GroupCreate, GroupJoin, GroupResponse, MembershipResponse
from ratings_api.services.groups import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a group; the caller becomes its Admin."""
    return GroupService(db).create_group(current_user.id, group_data.name, group_data.description)


@router.post("/join", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
def join_group(
    join_data: GroupJoin,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return GroupService(db).join_group(current_user.id, join_data.group_id)


@router.get("/{user_id}", response_model=List[MembershipResponse])
def get_memberships(
    user_id: str,
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    """Groups the user belongs to."""
    return GroupService(db).get_memberships(user_id)


@router.delete("/memberships/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_membership(
    membership_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Leave a group, or remove a member as the group's Admin."""
    service = GroupService(db)
    membership = service.get_membership(membership_id)
    if membership.user_id != current_user.id and not service.is_admin(current_user.id, membership.group_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only group admins can remove members")

    service.delete_membership(membership_id)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_group(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = GroupService(db)
    service.get_group(group_id)
    if not service.is_admin(current_user.id, group_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only group admins can delete the group")

    service.delete_group(group_id)
