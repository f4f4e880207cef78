"""
Completion notification fan-out.

A dispatch is queued on a worker pool and returns immediately; the request
that triggered it never waits on push delivery. Each subscription is sent to
as its own task so one slow or failing push service delays or fails only
that subscriber. There are no retries: every completion event gets at most
one delivery attempt per subscription.
"""
import enum
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List

from sqlalchemy.orm import Session

from ratings_api.core.errors import DeliveryError
from ratings_api.models.group import Group
from ratings_api.services.push import PushTransport, PushSubscriptionService

logger = logging.getLogger(__name__)


class DeliveryOutcome(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"
    REMOVED = "removed"  # endpoint reported gone, subscription deleted


class NotificationDispatcher:
    """
    Owns the worker pool used for push fan-out.

    Workers open their own sessions from ``session_factory``; nothing from
    the triggering request's session is shared with them.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        transport: PushTransport,
        max_workers: int = 4,
    ):
        self.session_factory = session_factory
        self.transport = transport
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="push-dispatch")

    def dispatch(self, group_id: str, message: str) -> Future:
        """
        Queue a notification to every subscribed member of the group.

        The returned future resolves to the list of per-subscription futures
        once the fan-out has been queued; callers on the request path should
        simply drop it.
        """
        future = self._executor.submit(self._fan_out, group_id, message)
        future.add_done_callback(self._log_fan_out_error)
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _fan_out(self, group_id: str, message: str) -> List[Future]:
        db = self.session_factory()
        try:
            group = db.get(Group, group_id)
            if group is None:
                logger.warning(f"Skipping notification: group {group_id} no longer exists")
                return []

            body = f"{group.name}: {message}"
            targets = [
                subscription.as_subscription_info()
                for subscription in PushSubscriptionService(db).get_group_subscriptions(group_id)
            ]
        finally:
            db.close()

        logger.info(f"Dispatching notification to {len(targets)} subscription(s) of group {group_id}")
        return [self._executor.submit(self._deliver, target, body) for target in targets]

    def _deliver(self, subscription_info: Dict, body: str) -> DeliveryOutcome:
        endpoint = subscription_info["endpoint"]
        try:
            self.transport.send(subscription_info, body)
        except DeliveryError as e:
            if e.permanently_invalid:
                logger.info(f"Push endpoint gone (status {e.status}), removing subscription {endpoint}")
                self._remove_subscription(endpoint)
                return DeliveryOutcome.REMOVED
            logger.warning(f"Push delivery to {endpoint} failed: {e.message}")
            return DeliveryOutcome.FAILED
        except Exception as e:
            logger.error(f"Unexpected error delivering push to {endpoint}: {e}", exc_info=True)
            return DeliveryOutcome.FAILED

        return DeliveryOutcome.SENT

    def _remove_subscription(self, endpoint: str) -> None:
        db = self.session_factory()
        try:
            PushSubscriptionService(db).delete_subscription(endpoint)
        except Exception as e:
            logger.error(f"Failed to remove stale subscription {endpoint}: {e}")
        finally:
            db.close()

    @staticmethod
    def _log_fan_out_error(future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Notification fan-out failed: {error}", exc_info=error)
