"""Consumer-group reader for the company event stream.

Entries are acknowledged only after the handler returns, so a crashing
consumer gets them redelivered. Entries that cannot be decoded are logged,
acknowledged and skipped.
"""
import logging
import signal
import socket
import threading
from collections.abc import Callable

import redis
from pydantic import ValidationError

from company_service.core.config import get_settings
from company_service.db.redis_conn import create_redis_pool, get_redis_conn
from company_service.schemas.events import DomainEvent

logger = logging.getLogger(__name__)


class CompanyEventConsumer:
    def __init__(self, redis_conn, topic: str, group: str, consumer_name: str | None = None):
        self._redis = redis_conn
        self.topic = topic
        self.group = group
        self.consumer_name = consumer_name or f"{group}-{socket.gethostname()}"

    def ensure_group(self) -> None:
        """Create the consumer group at the start of the stream; existing groups are kept."""
        try:
            self._redis.xgroup_create(self.topic, self.group, id="0", mkstream=True)
        except redis.ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    def poll(self, count: int = 10, block_ms: int = 1000) -> list[tuple[str, DomainEvent]]:
        entries = self._redis.xreadgroup(
            groupname=self.group,
            consumername=self.consumer_name,
            streams={self.topic: ">"},
            count=count,
            block=block_ms,
        )
        events = []
        for _stream, messages in entries or []:
            for entry_id, fields in messages:
                event = self._decode(entry_id, fields)
                if event is None:
                    self.ack(entry_id)
                    continue
                events.append((entry_id, event))
        return events

    def ack(self, entry_id: str) -> None:
        self._redis.xack(self.topic, self.group, entry_id)

    def run(self, handler: Callable[[DomainEvent], None], stop_event: threading.Event, block_ms: int = 1000) -> int:
        """Consume until ``stop_event`` is set. Returns the number of handled events."""
        self.ensure_group()
        handled = 0
        while not stop_event.is_set():
            try:
                batch = self.poll(block_ms=block_ms)
            except redis.RedisError:
                logger.exception("Error reading from %s/%s", self.topic, self.group)
                stop_event.wait(1)
                continue
            for entry_id, event in batch:
                try:
                    handler(event)
                except Exception:
                    # left pending for redelivery
                    logger.exception("Handler failed for entry %s (%s)", entry_id, event.event_type)
                    continue
                self.ack(entry_id)
                handled += 1
        return handled

    @staticmethod
    def _decode(entry_id: str, fields: dict) -> DomainEvent | None:
        payload = fields.get("payload")
        if not payload:
            logger.warning("Malformed entry %s: %s", entry_id, fields)
            return None
        try:
            return DomainEvent.from_json(payload)
        except ValidationError as exc:
            logger.warning("Error decoding entry %s: %s", entry_id, exc)
            return None


def log_event(event: DomainEvent) -> None:
    logger.info("Received event: %s, company: %s", event.event_type, event.company.id)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    pool = create_redis_pool(settings)
    consumer = CompanyEventConsumer(get_redis_conn(pool), settings.event_topic, settings.event_group_id)
    stop_event = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    signal.signal(signal.SIGTERM, lambda *_: stop_event.set())
    logger.info("Consuming %s as %s", settings.event_topic, consumer.consumer_name)
    try:
        consumer.run(log_event, stop_event)
    finally:
        pool.disconnect()


if __name__ == "__main__":
    main()
