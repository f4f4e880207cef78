"""
Web push subscription endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ratings_api.core.config import get_settings
from ratings_api.core.deps import get_current_user
from ratings_api.db.session import get_db
from ratings_api.models.user import User
from ratings_api.schemas.push import PushSubscribeRequest, PushUnsubscribeRequest, VapidPublicKeyResponse
from ratings_api.schemas.rating import DeleteResponse
from ratings_api.services.push import PushSubscriptionService

router = APIRouter(prefix="/push", tags=["push"])
settings = get_settings()


@router.get("/vapid_public_key", response_model=VapidPublicKeyResponse)
def vapid_public_key():
    """Application server key the browser subscribes with."""
    if not settings.push_enabled:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Push notifications are not configured",
        )
    return VapidPublicKeyResponse(public_key=settings.VAPID_PUBLIC_KEY)


@router.post("/subscribe", status_code=status.HTTP_201_CREATED)
def subscribe(
    request: PushSubscribeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    info = request.subscription_info
    PushSubscriptionService(db).upsert_subscription(
        current_user.id, info.endpoint, info.keys.p256dh, info.keys.auth
    )
    return {"endpoint": info.endpoint}


@router.delete("/subscribe", response_model=DeleteResponse)
def unsubscribe(
    request: PushUnsubscribeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    deleted = PushSubscriptionService(db).delete_subscription(request.endpoint, user_id=current_user.id)
    return DeleteResponse(deleted=deleted)
