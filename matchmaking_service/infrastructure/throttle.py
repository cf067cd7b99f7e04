"""
In-process notification throttle
"""
from collections import OrderedDict
from typing import Callable, Optional, Tuple
import time

from ..config import settings

ThrottleKey = Tuple[str, int, Optional[int]]


class NotificationThrottle:
    """
    Cooldown tracker keyed by (notification type, actor, related user)

    Remembers when a key last fired. Entries older than the retention window
    are swept on every record, and the table never grows past ``max_entries``:
    the oldest entries are evicted first.
    """

    def __init__(
        self,
        cooldown_seconds: float = settings.NOTIFICATION_COOLDOWN_SECONDS,
        retention_seconds: float = settings.NOTIFICATION_RETENTION_SECONDS,
        max_entries: int = settings.NOTIFICATION_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown_seconds = cooldown_seconds
        self.retention_seconds = retention_seconds
        self.max_entries = max_entries
        self.clock = clock
        self._sent: "OrderedDict[ThrottleKey, float]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sent)

    def can_send(
        self, notification_type: str, fid: int, related_fid: Optional[int] = None
    ) -> bool:
        """True when the key never fired or its cooldown has elapsed"""
        last = self._sent.get((notification_type, fid, related_fid))
        if last is None:
            return True
        return self.clock() - last >= self.cooldown_seconds

    def record(
        self, notification_type: str, fid: int, related_fid: Optional[int] = None
    ) -> None:
        """Remember that the key fired now"""
        key = (notification_type, fid, related_fid)
        now = self.clock()
        self._sent.pop(key, None)
        self._sent[key] = now
        self._sweep(now)

    def try_acquire(
        self, notification_type: str, fid: int, related_fid: Optional[int] = None
    ) -> bool:
        """Check and record in one step"""
        if not self.can_send(notification_type, fid, related_fid):
            return False
        self.record(notification_type, fid, related_fid)
        return True

    def _sweep(self, now: float) -> None:
        # insertion order == recency order, so stale entries sit at the front
        while self._sent:
            oldest_at = next(iter(self._sent.values()))
            if now - oldest_at <= self.retention_seconds and len(self._sent) <= self.max_entries:
                break
            self._sent.popitem(last=False)
