"""Voter-roster collaborator.

The tallying core only ever asks one question of the roster:
``eligible_count(election_id)``. Roster management lives elsewhere; the
StaticRoster below is the in-process stand-in the service ships with.
"""

import threading
from typing import Dict, Optional

from .errors import NotFound


class StaticRoster:
    def __init__(self, counts: Optional[Dict[str, int]] = None):
        self._lock = threading.Lock()
        self._counts: Dict[str, int] = dict(counts or {})

    def set_eligible_count(self, election_id: str, count: int) -> None:
        if count < 0:
            raise ValueError("eligible count must be non-negative")
        with self._lock:
            self._counts[election_id] = count

    def eligible_count(self, election_id: str) -> int:
        with self._lock:
            try:
                return self._counts[election_id]
            except KeyError:
                raise NotFound(f"no roster for election {election_id}") from None
