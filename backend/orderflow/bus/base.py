"""Publish/subscribe contract shared by every bus backend.

Delivery is at-least-once. Messages that share a key land on the same
partition and reach a consumer group in publish order; messages with
different keys carry no relative ordering.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional

from orderflow.events import Envelope, encode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Message:
    """One record read from a topic partition."""
    topic: str
    partition: int
    offset: int
    key: str
    value: str


class Subscription(ABC):
    """A consumer group's lazy, effectively infinite view of its topics.

    Iterating blocks until the next message arrives and stops only when the
    subscription is closed or fenced by a newer member of the same group.
    """

    poll_interval: float = 0.5

    def __iter__(self):
        return self

    def __next__(self) -> Message:
        while not self.closed:
            message = self.poll(self.poll_interval)
            if message is not None:
                return message
        raise StopIteration

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    def poll(self, timeout: Optional[float] = None) -> Optional[Message]:
        """Return the next message, or None once ``timeout`` seconds pass."""

    @abstractmethod
    def commit(self, message: Message) -> None:
        """Checkpoint the group past ``message``."""

    @abstractmethod
    def rewind(self, message: Message) -> None:
        """Deliver ``message`` (and everything after it on its partition) again."""

    @abstractmethod
    def close(self) -> None:
        ...


class EventBus(ABC):

    def publish(self, topic: str, key: str, envelope: Envelope) -> bool:
        """Best-effort publish. Failures are logged and reported, never retried here."""
        try:
            self.produce(topic, key, encode(envelope))
        except Exception:
            logger.exception(
                "Failed to publish %s event %s to %s (key=%s)",
                envelope.event_type, envelope.event_id, topic, key,
            )
            return False
        logger.debug("Published %s to %s (key=%s)", envelope.event_type, topic, key)
        return True

    @abstractmethod
    def produce(self, topic: str, key: str, value: str) -> None:
        """Append an already-encoded value to ``topic``."""

    @abstractmethod
    def subscribe(self, topics: Iterable[str], group: str) -> Subscription:
        """Join ``group`` and resume from its last committed offsets."""

    def close(self) -> None:
        """Release backend resources."""
