"""High-level entry points for the tallying engine.

TallyService wires the four components around one store, one roster and
one lock table. Every public operation of the engine is a method here:

- create_key / public_key: per-election key issuance
- submit_ballot: encrypted-ballot admission and homomorphic fold
- status / result: polling the lifecycle and the published tally
- close: administrative force-close
"""

from __future__ import annotations

from typing import Any, Optional

from . import config
from .accumulator import BallotAccumulator
from .decoder import ResultDecoder
from .keys import KeyManager
from .locks import KeyedLocks
from .models import Receipt, Result, Status
from .roster import StaticRoster
from .secrecy import PublicKey
from .state import ElectionStateMachine
from .store import ElectionStore, JsonFileStore, MemoryStore


class TallyService:
    def __init__(
        self,
        store: Optional[ElectionStore] = None,
        roster: Optional[StaticRoster] = None,
        key_bits: int = config.KEY_BITS,
    ):
        self.store = store if store is not None else MemoryStore()
        self.roster = roster if roster is not None else StaticRoster()
        self.keys = KeyManager(self.store, key_bits=key_bits)
        self.decoder = ResultDecoder(self.store, self.keys)
        self.state = ElectionStateMachine(self.store, self.decoder, KeyedLocks())
        self.accumulator = BallotAccumulator(self.store, self.keys, self.state, self.roster)

    def create_key(self, election_id: str, eligible_count: Optional[int] = None) -> PublicKey:
        """Issue the election key; optionally seed the roster size with it."""

        pub = self.keys.create_key(election_id)
        if eligible_count is not None:
            self.roster.set_eligible_count(election_id, eligible_count)
        return pub

    def public_key(self, election_id: str) -> PublicKey:
        return self.keys.get_public_key(election_id)

    def submit_ballot(
        self,
        election_id: str,
        voter_id: str,
        ciphertext: Any,
        pk_fingerprint: Optional[str] = None,
    ) -> Receipt:
        return self.accumulator.submit(election_id, voter_id, ciphertext, pk_fingerprint)

    def status(self, election_id: str) -> Status:
        return self.state.status(election_id)

    def result(self, election_id: str) -> Result:
        return self.state.result(election_id)

    def close(self, election_id: str) -> Result:
        return self.state.close(election_id)


def build_service() -> TallyService:
    """Build a service from ``secret_tally.config``."""

    store = JsonFileStore(config.STORE_PATH) if config.STORE_PATH else MemoryStore()
    return TallyService(store=store, key_bits=config.KEY_BITS)
