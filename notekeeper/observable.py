"""
State-holding broadcast primitive.

A `LiveValue` keeps the latest published value and a registry of subscriber
callbacks. Subscribing replays the current value immediately; every later
`publish` reaches all active subscribers in publish order. Delivery is
synchronous: `publish` returns once every callback has run.
"""

import asyncio
import logging
import threading
from typing import AsyncIterator, Callable, Generic, TypeVar

T = TypeVar("T")

_END = object()

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by `LiveValue.subscribe`; close it to stop delivery."""

    def __init__(self, owner: "LiveValue", callback: Callable):
        self._owner = owner
        self._callback = callback
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._owner._remove(self)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class LiveValue(Generic[T]):
    def __init__(self, initial: T):
        self._value = initial
        self._subscriptions: list[Subscription] = []
        self._streams: set[asyncio.Queue] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def value(self) -> T:
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    # PUBLIC_INTERFACE
    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        """
        Register `callback` and call it right away with the current value.

        On a closed LiveValue the callback still gets the last value once, and
        the returned subscription is already closed.
        """
        subscription = Subscription(self, callback)
        with self._lock:
            if self._closed:
                subscription.closed = True
            else:
                self._subscriptions.append(subscription)
            current = self._value
        self._deliver(subscription, current)
        return subscription

    # PUBLIC_INTERFACE
    def publish(self, value: T) -> None:
        """Store `value` as the latest and push it to every subscriber."""
        with self._lock:
            self._value = value
            targets = list(self._subscriptions)
        for subscription in targets:
            if not subscription.closed:
                self._deliver(subscription, value)

    # PUBLIC_INTERFACE
    async def stream(self) -> AsyncIterator[T]:
        """
        Iterate over the current value and every later one.

        Values are queued per iterator, so a slow consumer sees every
        publication in order. Leaving the loop closes the subscription; the
        iteration ends by itself once the LiveValue is closed.
        """
        queue: asyncio.Queue = asyncio.Queue()
        subscription = self.subscribe(queue.put_nowait)
        with self._lock:
            if self._closed:
                queue.put_nowait(_END)
            else:
                self._streams.add(queue)
        try:
            while True:
                value = await queue.get()
                if value is _END:
                    return
                yield value
        finally:
            subscription.close()
            with self._lock:
                self._streams.discard(queue)

    # PUBLIC_INTERFACE
    def close(self) -> None:
        """Drop every subscriber and end every open `stream()`. Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subscriptions, self._subscriptions = self._subscriptions, []
            streams, self._streams = self._streams, set()
        for subscription in subscriptions:
            subscription.closed = True
        for queue in streams:
            queue.put_nowait(_END)

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _deliver(self, subscription: Subscription, value: T) -> None:
        try:
            subscription._callback(value)
        except Exception:
            logger.exception("Subscriber %r failed while receiving an update", subscription._callback)
