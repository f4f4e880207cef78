"""
User listing and account deletion.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ratings_api.core.deps import get_current_user, require_self
from ratings_api.db.session import get_db, atomic
from ratings_api.models.user import User
from ratings_api.schemas.auth import UserResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserResponse])
def list_users(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return db.execute(select(User).order_by(User.username)).scalars().all()


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    current_user: User = Depends(require_self),
    db: Session = Depends(get_db),
):
    """Delete the caller's own account together with memberships and subscriptions."""
    with atomic(db):
        db.delete(current_user)
