"""
Web push subscription schemas.

The subscribe body mirrors the browser's ``PushSubscription.toJSON()``.
"""
from pydantic import BaseModel


class SubscriptionKeys(BaseModel):
    p256dh: str
    auth: str


class SubscriptionInfo(BaseModel):
    endpoint: str
    keys: SubscriptionKeys


class PushSubscribeRequest(BaseModel):
    subscription_info: SubscriptionInfo


class PushUnsubscribeRequest(BaseModel):
    endpoint: str


class VapidPublicKeyResponse(BaseModel):
    public_key: str
