"""Long-lived consumer loop, one per consumer group.

Each message is decoded, dispatched by payload class and handled in its own
database unit of work; the offset is committed only after the handler
returns. Outcomes per message:

- handled, or an event type with no handler: commit
- malformed payload: log, commit, drop
- transient infrastructure failure: rewind, back off, retry (forever)
- any other handler failure: log, commit, drop
"""
import logging
import threading
from typing import Callable, Optional

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session

from orderflow.bus import EventBus, Message, Subscription
from orderflow.config import ConsumerConfig
from orderflow.database import session_scope
from orderflow.events import Envelope, UnknownEvent, decode
from orderflow.exceptions import MalformedEvent, OrderflowError, TransientInfraError

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Envelope], object]


def is_transient(exc: BaseException) -> bool:
    if isinstance(exc, (TransientInfraError, OperationalError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class EventConsumer:

    def __init__(
        self,
        bus: EventBus,
        config: ConsumerConfig,
        session_factory,
        handlers: dict[type, Handler],
        sleep: Optional[Callable[[float], object]] = None,
    ):
        self.bus = bus
        self.config = config
        self.session_factory = session_factory
        self.handlers = handlers
        self._stop = threading.Event()
        self._sleep = sleep or self._stop.wait
        self._subscription: Optional[Subscription] = None
        self._thread: Optional[threading.Thread] = None
        self._failures = 0
        self.processed = 0
        self.dropped = 0

    @property
    def group(self) -> str:
        return self.config.group

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def subscription(self) -> Subscription:
        if self._subscription is None:
            self._subscription = self.bus.subscribe(self.config.topics, self.config.group)
            logger.info("Consumer %s subscribed to %s", self.group, ", ".join(self.config.topics))
        return self._subscription

    def dispatch(self, envelope: Envelope) -> bool:
        """Run the handler for ``envelope`` in its own unit of work. False if none applies."""
        handler = self.handlers.get(type(envelope.data))
        if handler is None:
            if isinstance(envelope.data, UnknownEvent):
                logger.debug("Ignoring unknown event type %s", envelope.event_type)
            else:
                logger.debug("Consumer %s has no handler for %s", self.group, envelope.event_type)
            return False
        with session_scope(self.session_factory) as db:
            handler(db, envelope)
        return True

    def handle(self, message: Message) -> None:
        """Process one message and settle its offset."""
        subscription = self.subscription
        try:
            envelope = decode(message.value)
        except MalformedEvent as exc:
            logger.warning(
                "Dropping malformed event at %s/%d@%d: %s",
                message.topic, message.partition, message.offset, exc.message,
            )
            self.dropped += 1
            subscription.commit(message)
            return

        try:
            self.dispatch(envelope)
        except Exception as exc:
            if is_transient(exc):
                self._failures += 1
                delay = self.backoff_delay()
                logger.warning(
                    "Transient failure handling %s %s (attempt %d); retrying in %.1fs: %s",
                    envelope.event_type, envelope.event_id, self._failures, delay, exc,
                )
                subscription.rewind(message)
                self._sleep(delay)
                return
            if isinstance(exc, OrderflowError):
                logger.error("Dropping %s %s: %s", envelope.event_type, envelope.event_id, exc.message)
            else:
                logger.exception("Handler for %s %s failed; dropping", envelope.event_type, envelope.event_id)
            self.dropped += 1
            self._failures = 0
            subscription.commit(message)
            return

        self._failures = 0
        self.processed += 1
        subscription.commit(message)

    def backoff_delay(self) -> float:
        delay = self.config.backoff_seconds * (2 ** max(self._failures - 1, 0))
        return min(delay, self.config.max_backoff_seconds)

    def process_one(self, timeout: Optional[float] = 0) -> bool:
        message = self.subscription.poll(timeout)
        if message is None:
            return False
        self.handle(message)
        return True

    def drain(self, max_messages: int = 10_000) -> int:
        """Handle everything currently available without blocking. Returns messages seen."""
        seen = 0
        while seen < max_messages and self.process_one(0):
            seen += 1
        return seen

    def run(self) -> None:
        logger.info("Consumer %s started", self.group)
        while not self._stop.is_set():
            if self.subscription.closed:
                if not self._stop.is_set():
                    logger.warning("Consumer %s was fenced by a newer member of its group", self.group)
                break
            try:
                self.process_one(self.config.poll_interval_seconds)
            except TransientInfraError as exc:
                self._failures += 1
                delay = self.backoff_delay()
                logger.warning("Consumer %s receive error; retrying in %.1fs: %s", self.group, delay, exc.message)
                self._sleep(delay)
            except Exception:
                self._failures += 1
                delay = self.backoff_delay()
                logger.exception("Consumer %s poll/commit failed; retrying in %.1fs", self.group, delay)
                self._sleep(delay)
        logger.info("Consumer %s stopped", self.group)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        if self._subscription is not None and self._subscription.closed:
            self._subscription = None
        self._thread = threading.Thread(target=self.run, name=f"consumer-{self.group}", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._subscription is not None:
            self._subscription.close()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
