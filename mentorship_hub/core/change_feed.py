import json
import logging
import threading
import uuid
from collections import deque
from typing import Any, Deque, Dict, Iterator, List, Literal, Mapping, Optional, Union

import redis
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Operation = Literal["insert", "update", "delete"]

# Entity kinds published by the services (one per table)
MENTORSHIP_REQUESTS = "mentorship_requests"
MESSAGES = "messages"
NOTIFICATIONS = "notifications"
CONNECTIONS = "connections"
ENTITY_KINDS = (MENTORSHIP_REQUESTS, MESSAGES, NOTIFICATIONS, CONNECTIONS)

def as_payload(row: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
    return row.model_dump(mode="json") if isinstance(row, BaseModel) else dict(row)

class ChangeEvent(BaseModel):
    entity_kind: str
    operation: Operation
    row: Dict[str, Any]
    sequence: int

class Subscription:
    """
    Handle returned by ChangeFeed.subscribe.

    Iterating blocks for the next matching event and stops only once the
    handle is unsubscribed; breaking out of a loop and iterating again resumes
    with the events buffered in the meantime. When more than ``buffer_size``
    events pile up the oldest are dropped and ``lagged`` is set, telling the
    owner to re-query instead of trusting its incremental state.
    """

    def __init__(self, feed: "ChangeFeed", entity_kind: str, filter: Optional[Mapping[str, Any]], buffer_size: int):
        self.id = uuid.uuid4().hex
        self.entity_kind = entity_kind
        self.filter = dict(filter or {})
        self.lagged = False
        self._feed = feed
        self._events: Deque[ChangeEvent] = deque()
        self._buffer_size = buffer_size
        self._cond = threading.Condition()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, entity_kind: str, row: Mapping[str, Any]) -> bool:
        if entity_kind != self.entity_kind:
            return False
        return all(row.get(key) == value for key, value in self.filter.items())

    def _push(self, event: ChangeEvent):
        with self._cond:
            if self._closed:
                return
            if len(self._events) >= self._buffer_size:
                self._events.popleft()
                if not self.lagged:
                    logger.warning(f"Subscription {self.id} on {self.entity_kind} overflowed; dropping oldest events")
                self.lagged = True
            self._events.append(event)
            self._cond.notify_all()

    def _mark_lagged(self):
        with self._cond:
            self.lagged = True

    def _close(self):
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Next event, or None on timeout or once the handle is closed and drained."""
        with self._cond:
            if not self._events and not self._closed:
                self._cond.wait(timeout)
            if self._events:
                return self._events.popleft()
            return None

    def poll(self) -> List[ChangeEvent]:
        """Drains the buffered events without blocking."""
        with self._cond:
            events = list(self._events)
            self._events.clear()
            return events

    def clear_lag(self):
        with self._cond:
            self.lagged = False

    def __iter__(self) -> Iterator[ChangeEvent]:
        while True:
            event = self.get()
            if event is None:
                return
            yield event

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc):
        self._feed.unsubscribe(self)

class ChangeFeed:
    """In-process fan-out of committed row changes to filtered subscribers."""

    def __init__(self, buffer_size: int = 1000):
        self.buffer_size = buffer_size
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()
        self._sequence = 0

    def subscribe(self, entity_kind: str, filter: Optional[Mapping[str, Any]] = None) -> Subscription:
        subscription = Subscription(self, entity_kind, filter, self.buffer_size)
        with self._lock:
            self._subscriptions[subscription.id] = subscription
        logger.debug(f"Subscription {subscription.id} opened on {entity_kind} with filter {subscription.filter}")
        return subscription

    def unsubscribe(self, subscription: Subscription):
        """Releases the handle; unknown or already released handles are ignored."""
        with self._lock:
            self._subscriptions.pop(subscription.id, None)
        subscription._close()
        logger.debug(f"Subscription {subscription.id} closed")

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, entity_kind: str, operation: Operation, row: Union[BaseModel, Mapping[str, Any]]) -> int:
        """Delivers a committed change to every matching subscription. Returns the number reached."""
        return self._deliver(entity_kind, operation, as_payload(row))

    def close(self):
        """Releases every open subscription."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        for subscription in subscriptions:
            self.unsubscribe(subscription)

    def _deliver(self, entity_kind: str, operation: Operation, payload: Dict[str, Any]) -> int:
        with self._lock:
            self._sequence += 1
            event = ChangeEvent(entity_kind=entity_kind, operation=operation, row=payload, sequence=self._sequence)
            targets = [s for s in self._subscriptions.values() if s.matches(entity_kind, payload)]
            # Pushing under the lock keeps per-subscription order equal to publish order
            for subscription in targets:
                subscription._push(event)
        return len(targets)

    def _mark_all_lagged(self):
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        for subscription in subscriptions:
            subscription._mark_lagged()

class RedisChangeFeed(ChangeFeed):
    """
    ChangeFeed shared by every app instance through Redis pub/sub.

    Each entity kind gets its own channel. ``publish`` only writes to Redis;
    a listener thread reads all channels back and delivers locally, so a
    change committed by one worker reaches subscriptions held by any worker,
    this one included. Filters and bounded buffers apply on the receiving
    side exactly as in the in-process feed.

    Push is best effort: when Redis is unreachable every local subscription
    is marked lagged so its owner re-queries the store.
    """

    def __init__(self, client: redis.Redis, buffer_size: int = 1000, channel_prefix: str = "mentorship_hub", poll_timeout: float = 1.0):
        super().__init__(buffer_size)
        self.client = client
        self.channel_prefix = channel_prefix
        self.poll_timeout = poll_timeout
        self._pubsub = client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(*[self.channel(kind) for kind in ENTITY_KINDS])
        self._stopped = threading.Event()
        self._listener = threading.Thread(target=self._listen, name="change-feed-listener", daemon=True)
        self._listener.start()
        logger.info(f"Change feed listening on Redis channels {channel_prefix}:*")

    @classmethod
    def from_url(cls, url: str, buffer_size: int = 1000, channel_prefix: str = "mentorship_hub") -> "RedisChangeFeed":
        return cls(redis.Redis.from_url(url), buffer_size=buffer_size, channel_prefix=channel_prefix)

    def channel(self, entity_kind: str) -> str:
        return f"{self.channel_prefix}:{entity_kind}"

    def publish(self, entity_kind: str, operation: Operation, row: Union[BaseModel, Mapping[str, Any]]) -> int:
        """Sends a committed change to Redis. Returns the number of feeds (app instances) reached."""
        message = json.dumps({"entity_kind": entity_kind, "operation": operation, "row": as_payload(row)})
        try:
            return self.client.publish(self.channel(entity_kind), message)
        except redis.RedisError as e:
            logger.error(f"Failed to publish {operation} on {entity_kind} to Redis: {e}")
            self._mark_all_lagged()
            return 0

    def close(self):
        self._stopped.set()
        self._listener.join(timeout=self.poll_timeout + 1)
        self._pubsub.close()
        super().close()

    def _listen(self):
        while not self._stopped.is_set():
            try:
                message = self._pubsub.get_message(timeout=self.poll_timeout)
            except redis.RedisError as e:
                logger.error(f"Change feed lost its Redis subscription: {e}")
                self._mark_all_lagged()
                self._stopped.wait(self.poll_timeout)
                continue
            if message is None or message.get("type") != "message":
                continue
            try:
                data = json.loads(message["data"])
                self._deliver(data["entity_kind"], data["operation"], data["row"])
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Ignoring malformed change feed message on {message.get('channel')}: {e}")
