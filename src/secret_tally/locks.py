"""Lock-per-election table.

Ballot folds for one election must be serialized, but elections are
independent of each other, so each election id gets its own lock instead of
sharing a process-wide one.
"""

import threading
from typing import Dict


class KeyedLocks:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def lock_for(self, election_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(election_id)
            if lock is None:
                lock = self._locks[election_id] = threading.Lock()
            return lock
