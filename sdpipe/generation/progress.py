# sdpipe/generation/progress.py

from __future__ import annotations
import itertools
import threading
from typing import Any, Callable, Dict, Optional

Observer = Callable[[Any], None]


class ProgressChannel:
    """
    Single-slot observable holding the latest progress snapshot (or None).

    Observers are called synchronously, on the thread that calls `update`,
    in the order they subscribed. Deliveries are serialized, so a subscriber
    joining from another thread is offered each snapshot once, in order.
    An observer that raises is reported and skipped for that snapshot; the
    others are still notified and the publisher never sees the error.

    `current()` only takes the value lock, which is never held while
    observers run, so it can be polled while a delivery is blocked.
    """

    def __init__(self, initial: Optional[Any] = None):
        self._value = initial
        self._observers: Dict[int, Observer] = {}
        self._ids = itertools.count()
        self._value_lock = threading.Lock()
        # Re-entrant so an observer may subscribe or publish from its callback
        self._delivery_lock = threading.RLock()

    def current(self) -> Optional[Any]:
        with self._value_lock:
            return self._value

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Register `observer`. It is called right away with the current
        snapshot, if there is one, then with every later update.

        Returns a function that removes the registration.
        """
        with self._delivery_lock:
            with self._value_lock:
                token = next(self._ids)
                self._observers[token] = observer
                value = self._value
            if value is not None:
                self._notify(observer, value)

        def unsubscribe() -> None:
            with self._value_lock:
                self._observers.pop(token, None)

        return unsubscribe

    def update(self, snapshot: Any) -> None:
        with self._delivery_lock:
            with self._value_lock:
                self._value = snapshot
                observers = list(self._observers.values())
            for observer in observers:
                self._notify(observer, snapshot)

    def reset(self) -> None:
        """Forget the stored snapshot. Observers are not notified."""
        with self._value_lock:
            self._value = None

    def close(self) -> None:
        with self._value_lock:
            self._observers.clear()

    @staticmethod
    def _notify(observer: Observer, snapshot: Any) -> None:
        try:
            observer(snapshot)
        except Exception as e:
            print(f"[ProgressChannel] Observer {observer!r} failed: {type(e).__name__}: {e}")
