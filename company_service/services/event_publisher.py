"""Event publishers for company domain events.

``publish`` only hands the event over: it returns once the transport has
accepted the payload and raises PublishFailed when it will not. Broker
acknowledgment happens later on a background thread and is only logged.
"""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait

import redis

from company_service.core.config import Settings
from company_service.core.errors import PublishFailed
from company_service.db.redis_conn import create_redis_pool, get_redis_conn
from company_service.schemas.events import DomainEvent

logger = logging.getLogger(__name__)


class EventPublisher:
    """Interface shared by the Redis and in-memory publishers."""

    topic: str

    def publish(self, event: DomainEvent) -> None:
        raise NotImplementedError

    def close(self, timeout: float | None = None) -> None:
        raise NotImplementedError


class RedisStreamPublisher(EventPublisher):
    """Appends events to a Redis Stream (one stream per topic).

    Each ``XADD`` runs on a small worker pool; the returned entry id is the
    broker acknowledgment. Outstanding deliveries are bounded by
    ``max_pending`` and drained by ``close``.
    """

    def __init__(
        self,
        redis_conn,
        topic: str,
        max_stream_length: int = 10_000,
        max_pending: int = 1000,
        workers: int = 2,
        pool: redis.ConnectionPool | None = None,
    ):
        self.topic = topic
        self._redis = redis_conn
        self._pool = pool
        self._max_len = max_stream_length
        self._max_pending = max_pending
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="event-publisher")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisStreamPublisher":
        pool = create_redis_pool(settings)
        return cls(
            get_redis_conn(pool),
            topic=settings.event_topic,
            max_stream_length=settings.event_stream_maxlen,
            max_pending=settings.event_max_pending,
            pool=pool,
        )

    @property
    def pending(self) -> int:
        with self._lock:
            return sum(1 for future in self._pending if not future.done())

    def publish(self, event: DomainEvent) -> None:
        try:
            payload = event.to_json()
        except (TypeError, ValueError) as exc:
            logger.error("Could not serialize %s event: %s", event.event_type, exc)
            raise PublishFailed(f"could not serialize event: {exc}") from exc

        with self._lock:
            if self._closed:
                raise PublishFailed("event publisher is closed")
            if sum(1 for f in self._pending if not f.done()) >= self._max_pending:
                raise PublishFailed(f"event publisher queue is full ({self._max_pending} pending)")
            try:
                future = self._executor.submit(self._deliver, event.event_type, payload)
            except RuntimeError as exc:
                raise PublishFailed(f"event publisher is shutting down: {exc}") from exc
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _deliver(self, event_type: str, payload: str) -> str:
        try:
            entry_id = self._redis.xadd(
                self.topic,
                {"event_type": event_type, "payload": payload},
                maxlen=self._max_len,
                approximate=True,
            )
        except Exception as exc:
            logger.error("Error producing %s event to %s: %s", event_type, self.topic, exc)
            raise
        logger.debug("Produced %s event to %s as entry %s", event_type, self.topic, entry_id)
        return entry_id

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def close(self, timeout: float | None = None) -> None:
        """Stop accepting events, wait up to ``timeout`` for deliveries, release Redis."""
        with self._lock:
            self._closed = True
            outstanding = list(self._pending)
        if outstanding:
            logger.info("Waiting for %d in-flight event deliveries", len(outstanding))
            _, not_done = wait(outstanding, timeout=timeout)
            if not_done:
                logger.warning("Abandoning %d undelivered events after %ss", len(not_done), timeout)
        self._executor.shutdown(wait=False, cancel_futures=True)
        self._redis.close()
        if self._pool is not None:
            self._pool.disconnect()


class MemoryEventPublisher(EventPublisher):
    """Keeps published events in order; for local runs and tests.

    ``fail_next`` refuses the next hand-off, ``fail_all`` refuses every one.
    """

    def __init__(self, topic: str = "company_events"):
        self.topic = topic
        self.published: list[tuple[str, str]] = []
        self.attempts = 0
        self.fail_next = False
        self.fail_all = False
        self.closed = False
        self._lock = threading.Lock()

    def publish(self, event: DomainEvent) -> None:
        with self._lock:
            self.attempts += 1
            if self.closed:
                raise PublishFailed("event publisher is closed")
            if self.fail_all or self.fail_next:
                self.fail_next = False
                raise PublishFailed("event bus unavailable")
            self.published.append((self.topic, event.to_json()))

    def events(self) -> list[DomainEvent]:
        with self._lock:
            return [DomainEvent.from_json(payload) for _, payload in self.published]

    def close(self, timeout: float | None = None) -> None:
        self.closed = True


def create_event_publisher(settings: Settings) -> EventPublisher:
    """Pick the publisher for ``settings.event_bus_backend`` (redis or memory)."""
    if settings.event_bus_backend == "memory":
        return MemoryEventPublisher(topic=settings.event_topic)
    if settings.event_bus_backend != "redis":
        raise ValueError(f"unknown event bus backend: {settings.event_bus_backend!r}")
    return RedisStreamPublisher.from_settings(settings)
