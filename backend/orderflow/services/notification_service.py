"""Best-effort "order ready" notifications.

Sends run on a small thread pool, detached from both the request path and the
consumer loop. Each one is tried once; failures are logged and go no further.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol
from uuid import UUID

from orderflow.clients.users import UserInfo
from orderflow.exceptions import OrderflowError

logger = logging.getLogger(__name__)


class UserLookup(Protocol):
    def get_user(self, user_id: UUID) -> UserInfo: ...


class OrderReadyMailer(Protocol):
    def send_order_ready(self, to: str, order_id, restaurant_name: str) -> None: ...


class OrderReadyNotifier:

    def __init__(self, users: UserLookup, mailer: OrderReadyMailer, max_workers: int = 4):
        self.users = users
        self.mailer = mailer
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()

    def notify_order_ready(self, user_id: UUID, order_id: UUID, restaurant_name: str = "Restaurant") -> Future:
        future = self._executor.submit(self._send_order_ready, user_id, order_id, restaurant_name)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def _send_order_ready(self, user_id: UUID, order_id: UUID, restaurant_name: str) -> bool:
        try:
            user = self.users.get_user(user_id)
            self.mailer.send_order_ready(user.email, order_id, restaurant_name)
        except OrderflowError as exc:
            logger.error("Order ready notification for order %s failed: %s", order_id, exc.message)
            return False
        except Exception:
            logger.exception("Unexpected error notifying user %s about order %s", user_id, order_id)
            return False

        logger.info("Order ready email sent to %s for order %s", user.email, order_id)
        return True

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until every notification submitted so far has finished."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
