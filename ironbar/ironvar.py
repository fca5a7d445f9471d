"""Named dynamic variables whose changes are broadcast to subscribers."""

from __future__ import annotations

import queue
import threading
from collections import deque
from typing import Optional

CHANNEL_CAPACITY = 32


class InvalidKeyError(ValueError):
    """Raised when a variable key contains characters that are not allowed."""

    def __init__(self, key: str) -> None:
        super().__init__("Invalid key")
        self.key = key


def is_valid_key(key: str) -> bool:
    """Return True if the key is non-empty and holds only alphanumerics, '_' or '-'."""
    return bool(key) and all(char.isalnum() or char in "_-" for char in key)


class Subscription:
    """A receiving end of a variable's broadcast channel.

    Holds at most ``CHANNEL_CAPACITY`` pending values; when full, the
    oldest pending value is dropped.
    """

    def __init__(self, capacity: int = CHANNEL_CAPACITY) -> None:
        self._pending: deque[Optional[str]] = deque(maxlen=capacity)
        self._ready = threading.Condition()

    def _push(self, value: Optional[str]) -> None:
        with self._ready:
            self._pending.append(value)
            self._ready.notify_all()

    def get(self, timeout: Optional[float] = None) -> Optional[str]:
        """Wait for the next value. Raises ``queue.Empty`` on timeout."""
        with self._ready:
            if not self._ready.wait_for(lambda: bool(self._pending), timeout):
                raise queue.Empty
            return self._pending.popleft()

    def get_nowait(self) -> Optional[str]:
        """Return the next pending value, or raise ``queue.Empty``."""
        with self._ready:
            if not self._pending:
                raise queue.Empty
            return self._pending.popleft()

    def __len__(self) -> int:
        with self._ready:
            return len(self._pending)


class _Variable:
    def __init__(self, value: Optional[str] = None) -> None:
        self.value = value
        self.subscribers: list[Subscription] = []

    def broadcast(self, value: Optional[str]) -> None:
        for subscriber in self.subscribers:
            subscriber._push(value)

    def set(self, value: Optional[str]) -> None:
        self.value = value
        self.broadcast(value)

    def subscribe(self) -> Subscription:
        subscription = Subscription()
        self.subscribers.append(subscription)
        self.broadcast(self.value)
        return subscription


class VariableManager:
    """Holds all variables and hands out subscriptions to them."""

    def __init__(self) -> None:
        self._variables: dict[str, _Variable] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: str) -> None:
        """Set a variable, creating it if needed. Raises InvalidKeyError."""
        if not is_valid_key(key):
            raise InvalidKeyError(key)
        with self._lock:
            variable = self._variables.get(key)
            if variable is None:
                self._variables[key] = _Variable(value)
            else:
                variable.set(value)

    def get(self, key: str) -> Optional[str]:
        """Return the current value of a variable, or None."""
        with self._lock:
            variable = self._variables.get(key)
            return None if variable is None else variable.value

    def subscribe(self, key: str) -> Subscription:
        """Subscribe to a variable, creating it if needed.

        The current value is sent immediately to every subscriber of the variable.
        """
        with self._lock:
            variable = self._variables.setdefault(key, _Variable())
            return variable.subscribe()