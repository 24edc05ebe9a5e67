"""In-process partitioned log bus.

Each topic is split into ``partitions`` append-only logs. A message's key
picks its partition, so same-key messages keep their publish order. Consumer
groups track a committed offset per (topic, partition); a group member that
subscribes again resumes from those offsets and the previous member of that
group is fenced off.
"""
import logging
import threading
import time
import zlib
from typing import Iterable, Optional

from orderflow.bus.base import EventBus, Message, Subscription

logger = logging.getLogger(__name__)


class InMemoryEventBus(EventBus):

    def __init__(self, partitions: int = 8):
        if partitions < 1:
            raise ValueError("partitions must be >= 1")
        self.partitions = partitions
        self._logs: dict[str, list[list[Message]]] = {}
        self._committed: dict[tuple[str, str, int], int] = {}
        self._members: dict[str, "InMemorySubscription"] = {}
        self._cond = threading.Condition()

    def partition_for(self, key: str) -> int:
        return zlib.crc32(key.encode("utf-8")) % self.partitions

    def _topic_log(self, topic: str) -> list[list[Message]]:
        log = self._logs.get(topic)
        if log is None:
            log = [[] for _ in range(self.partitions)]
            self._logs[topic] = log
        return log

    def produce(self, topic: str, key: str, value: str) -> None:
        partition = self.partition_for(key)
        with self._cond:
            records = self._topic_log(topic)[partition]
            records.append(Message(topic, partition, len(records), key, value))
            self._cond.notify_all()

    def subscribe(self, topics: Iterable[str], group: str) -> "InMemorySubscription":
        with self._cond:
            previous = self._members.get(group)
            if previous is not None and not previous.closed:
                logger.info("Consumer group %s rebalanced; fencing previous member", group)
                previous._fenced = True
            subscription = InMemorySubscription(self, list(topics), group)
            self._members[group] = subscription
            self._cond.notify_all()
        return subscription

    def committed(self, group: str, topic: str, partition: int) -> int:
        """Offset the group will resume from on ``topic``/``partition``."""
        with self._cond:
            return self._committed.get((group, topic, partition), 0)

    def lag(self, group: str, topics: Iterable[str]) -> int:
        """Messages on ``topics`` the group has not committed yet."""
        with self._cond:
            pending = 0
            for topic in topics:
                for partition, records in enumerate(self._logs.get(topic, [])):
                    pending += len(records) - self._committed.get((group, topic, partition), 0)
            return pending

    def close(self) -> None:
        with self._cond:
            for member in self._members.values():
                member._closed = True
            self._members.clear()
            self._cond.notify_all()


class InMemorySubscription(Subscription):

    def __init__(self, bus: InMemoryEventBus, topics: list[str], group: str):
        self.bus = bus
        self.topics = topics
        self.group = group
        self._positions: dict[tuple[str, int], int] = {}
        self._cursor = 0
        self._fenced = False
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed or self._fenced

    def _assignments(self) -> list[tuple[str, int]]:
        return [(topic, p) for topic in self.topics for p in range(self.bus.partitions)]

    def _next_locked(self) -> Optional[Message]:
        assignments = self._assignments()
        for step in range(len(assignments)):
            topic, partition = assignments[(self._cursor + step) % len(assignments)]
            records = self.bus._logs.get(topic)
            if not records:
                continue
            position = self._positions.get(
                (topic, partition), self.bus._committed.get((self.group, topic, partition), 0)
            )
            if position < len(records[partition]):
                self._positions[(topic, partition)] = position + 1
                self._cursor = (self._cursor + step + 1) % len(assignments)
                return records[partition][position]
        return None

    def poll(self, timeout: Optional[float] = None) -> Optional[Message]:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self.bus._cond:
            while not self.closed:
                message = self._next_locked()
                if message is not None:
                    return message
                if deadline is None:
                    self.bus._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self.bus._cond.wait(remaining)
        return None

    def commit(self, message: Message) -> None:
        with self.bus._cond:
            if self._fenced:
                logger.warning(
                    "Ignoring commit from fenced member of %s at %s/%d@%d",
                    self.group, message.topic, message.partition, message.offset,
                )
                return
            slot = (self.group, message.topic, message.partition)
            self.bus._committed[slot] = max(self.bus._committed.get(slot, 0), message.offset + 1)

    def rewind(self, message: Message) -> None:
        with self.bus._cond:
            self._positions[(message.topic, message.partition)] = message.offset

    def close(self) -> None:
        with self.bus._cond:
            self._closed = True
            if self.bus._members.get(self.group) is self:
                del self.bus._members[self.group]
            self.bus._cond.notify_all()
