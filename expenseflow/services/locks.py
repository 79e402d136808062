"""Per-expense mutual exclusion for the read-decide-write approval sequence."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class ExpenseLockRegistry:
    """Hands out one reentrant lock per expense id.

    Entries are reference counted and dropped once no thread holds or waits
    on them, so the registry does not grow with the number of expenses seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}
        self._users: Dict[int, int] = {}

    @contextmanager
    def hold(self, expense_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(expense_id, threading.RLock())
            self._users[expense_id] = self._users.get(expense_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[expense_id] -= 1
                if self._users[expense_id] == 0:
                    del self._users[expense_id]
                    del self._locks[expense_id]

    def active_count(self) -> int:
        with self._guard:
            return len(self._locks)


expense_locks = ExpenseLockRegistry()
