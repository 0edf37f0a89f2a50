"""
Per-user coupon usage counts.

Evaluation only reads the ledger. Apply holds the (user, code) lock while
it re-checks eligibility and increments, so concurrent applies cannot both
pass the usage cap.
"""
import copy
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from coupons.models import normalize_code

DEFAULT_LOCK_STRIPES = 64


class UsageLedger:
    def __init__(self, lock_stripes: int = DEFAULT_LOCK_STRIPES):
        self._counts: Dict[str, Dict[str, int]] = {}
        self._lock = threading.Lock()
        # Fixed pool; keys hashing to the same stripe just serialize together
        self._stripes = tuple(threading.Lock() for _ in range(max(1, lock_stripes)))

    def get(self, user_id: str, code: str) -> int:
        with self._lock:
            return self._counts.get(user_id, {}).get(normalize_code(code), 0)

    def increment(self, user_id: str, code: str) -> int:
        code = normalize_code(code)
        with self._lock:
            usage = self._counts.setdefault(user_id, {})
            usage[code] = usage.get(code, 0) + 1
            return usage[code]

    def lock_for(self, user_id: str, code: str) -> threading.Lock:
        return self._stripes[hash((user_id, normalize_code(code))) % len(self._stripes)]

    @contextmanager
    def hold(self, user_id: str, code: str) -> Iterator[None]:
        """Serialize read-check-increment sequences for one (user, code)."""
        with self.lock_for(user_id, code):
            yield

    def usage_for(self, user_id: str) -> Dict[str, int]:
        with self._lock:
            return dict(self._counts.get(user_id, {}))

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return copy.deepcopy(self._counts)

    def clear(self) -> None:
        """Drop all counts; key locks are untouched so active holders stay exclusive."""
        with self._lock:
            self._counts.clear()
