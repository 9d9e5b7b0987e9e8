"""Publish/subscribe channel for "a submission was accepted" notifications."""

import logging
from threading import Lock
from typing import Any, Callable, List

Subscriber = Callable[[Any], None]


class SubmissionBroadcast:
    """
    Fan out accepted submissions to interested observers (counters, loggers).
    A failing subscriber is logged and skipped; it never breaks the publisher.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []
        self._lock = Lock()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, submission: Any = None) -> int:
        """Notify every subscriber. Returns how many were called successfully."""
        with self._lock:
            subscribers = list(self._subscribers)
        delivered = 0
        for callback in subscribers:
            try:
                callback(submission)
                delivered += 1
            except Exception as e:
                logging.error(f"Submission broadcast subscriber failed: {str(e)}", exc_info=True)
        return delivered
