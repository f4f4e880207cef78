"""
Web push delivery and subscription storage.
"""
import logging
from typing import Dict, List, Optional, Protocol

import requests
from pywebpush import webpush, WebPushException
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from ratings_api.core.errors import DeliveryError, DeliveryFailure
from ratings_api.db.session import atomic
from ratings_api.models.group import GroupMembership
from ratings_api.models.notification import PushSubscription

logger = logging.getLogger(__name__)

# Push services answer these when the subscription no longer exists.
GONE_STATUS_CODES = {404, 410}


class PushTransport(Protocol):
    """Delivers one plaintext body to one subscription or raises ``DeliveryError``."""

    def send(self, subscription_info: Dict, body: str) -> None:
        ...


class WebPushTransport:
    """VAPID-signed Web Push delivery through pywebpush."""

    def __init__(
        self,
        vapid_private_key: str,
        claims_subject: str,
        ttl: int = 0,
        timeout: float = 10.0,
    ):
        self.vapid_private_key = vapid_private_key
        self.claims_subject = claims_subject
        self.ttl = ttl
        self.timeout = timeout

    def send(self, subscription_info: Dict, body: str) -> None:
        try:
            webpush(
                subscription_info=subscription_info,
                data=body,
                vapid_private_key=self.vapid_private_key,
                # pywebpush fills in aud/exp on the dict it is given
                vapid_claims={"sub": self.claims_subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            kind = (
                DeliveryFailure.PERMANENTLY_INVALID
                if status in GONE_STATUS_CODES
                else DeliveryFailure.TRANSIENT
            )
            raise DeliveryError(kind, str(e), status=status) from e
        except requests.RequestException as e:
            raise DeliveryError(DeliveryFailure.TRANSIENT, str(e)) from e


class PushSubscriptionService:
    """Storage of browser push subscriptions, keyed by endpoint."""

    def __init__(self, db: Session):
        self.db = db

    def upsert_subscription(self, user_id: str, endpoint: str, p256dh: str, auth: str) -> PushSubscription:
        """
        Store a subscription. An existing endpoint gets the new keys and owner,
        since a browser may resubscribe at the same endpoint or switch users.
        """
        with atomic(self.db):
            subscription = self.db.get(PushSubscription, endpoint)
            if subscription is None:
                subscription = PushSubscription(endpoint=endpoint, user_id=user_id, p256dh=p256dh, auth=auth)
                self.db.add(subscription)
            else:
                subscription.user_id = user_id
                subscription.p256dh = p256dh
                subscription.auth = auth

        self.db.refresh(subscription)
        return subscription

    def delete_subscription(self, endpoint: str, user_id: Optional[str] = None) -> int:
        stmt = delete(PushSubscription).where(PushSubscription.endpoint == endpoint)
        if user_id is not None:
            stmt = stmt.where(PushSubscription.user_id == user_id)

        with atomic(self.db):
            result = self.db.execute(stmt)
        return result.rowcount

    def get_group_subscriptions(self, group_id: str) -> List[PushSubscription]:
        """Subscriptions of every current member of the group, one per endpoint."""
        stmt = (
            select(PushSubscription)
            .join(GroupMembership, GroupMembership.user_id == PushSubscription.user_id)
            .where(GroupMembership.group_id == group_id)
            .distinct()
            .order_by(PushSubscription.endpoint)
        )
        return list(self.db.execute(stmt).scalars().all())


class LoggingTransport:
    """Transport used when no VAPID keys are configured: logs and drops."""

    def send(self, subscription_info: Dict, body: str) -> None:
        logger.info(f"Push disabled, not sending to {subscription_info.get('endpoint')}: {body}")
