from __future__ import annotations

import time
from typing import Optional

from .errors import DeadlineExceeded


class CancelToken:
    # Expires on cancel() or at its deadline; children expire with their parent.

    def __init__(self, timeout_s: Optional[float] = None, parent: Optional["CancelToken"] = None):
        self._deadline = time.monotonic() + timeout_s if timeout_s is not None else None
        self._parent = parent
        self._cancelled = False
        self.reason = ""

    def child(self, timeout_s: Optional[float] = None) -> "CancelToken":
        return CancelToken(timeout_s, parent=self)

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def expired(self) -> bool:
        if self._cancelled:
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.expired

    def remaining(self) -> Optional[float]:
        own = None if self._deadline is None else max(0.0, self._deadline - time.monotonic())
        inherited = self._parent.remaining() if self._parent is not None else None
        if own is None:
            return inherited
        if inherited is None:
            return own
        return min(own, inherited)

    def raise_if_expired(self) -> None:
        if self.expired:
            raise DeadlineExceeded(self.reason or "deadline exceeded")
