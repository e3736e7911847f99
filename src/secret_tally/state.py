"""ElectionStateMachine: the single authority over Open -> Closed.

An election closes exactly once, when an admitted ballot brings
``ballots_received`` to the roster's ``eligible_count`` (or when an operator
forces it through ``close``). Both paths flip the state inside the
election's critical section; decryption happens after the flip, so no
ballot can be folded into a tally that is being decrypted.
"""

from __future__ import annotations

import logging

from .decoder import ResultDecoder
from .errors import DecryptionError, ElectionClosed, NotFound, NotReady
from .locks import KeyedLocks
from .models import ElectionState, Result, Status, TallyRecord
from .store import ElectionStore

logger = logging.getLogger(__name__)


class ElectionStateMachine:
    def __init__(self, store: ElectionStore, decoder: ResultDecoder, locks: KeyedLocks | None = None):
        self.store = store
        self.decoder = decoder
        self.locks = locks if locks is not None else KeyedLocks()

    def load_record(self, election_id: str) -> TallyRecord:
        """Return the stored tally, or a fresh one if the election has a key."""

        record = self.store.get_tally(election_id)
        if record is not None:
            return record
        if self.store.get_key(election_id) is None:
            raise NotFound(f"unknown election {election_id}")

        return TallyRecord(election_id=election_id)

    def evaluate(self, record: TallyRecord, eligible_count: int) -> bool:
        """Close ``record`` if the ballot just folded completed the roster.

        Must be called with the election lock held, right after a fold. The
        comparison is an equality on the count reached by this fold, never a
        ``>=`` evaluated later, so a roster that shrinks after the fact
        cannot close the election retroactively. Returns True only for the
        call that performs the transition.
        """

        if record.closed:
            return False
        if record.ballots_received != eligible_count:
            return False

        record.state = ElectionState.CLOSED
        logger.info(
            "Election %s closed after %d of %d ballots",
            record.election_id,
            record.ballots_received,
            eligible_count,
        )
        return True

    def close(self, election_id: str) -> Result:
        """Administrative force-close; same guard as the ballot-driven path."""

        with self.locks.lock_for(election_id):
            record = self.load_record(election_id)
            if record.closed:
                raise ElectionClosed(f"election {election_id} is already closed")
            record.state = ElectionState.CLOSED
            self.store.put_tally(record)
        logger.info("Election %s force-closed with %d ballots", election_id, record.ballots_received)

        return self.finalize(election_id)

    def finalize(self, election_id: str) -> Result:
        """Decrypt and persist the result of a freshly closed election.

        A DecryptionError is recorded on the election, logged and re-raised;
        it is never retried.
        """

        try:
            result = self.decoder.decrypt_and_finalize(election_id)
        except DecryptionError as exc:
            logger.error("Finalization of election %s failed: %s", election_id, exc)
            self._flag_failure(election_id, str(exc))
            raise

        self.store.put_result(result)
        logger.info("Published result for election %s (%d ballots)", election_id, result.total)

        return result

    def _flag_failure(self, election_id: str, reason: str) -> None:
        with self.locks.lock_for(election_id):
            record = self.load_record(election_id)
            record.finalization_error = reason
            self.store.put_tally(record)

    def status(self, election_id: str) -> Status:
        """Read-only view of the lifecycle; never triggers a transition."""

        record = self.load_record(election_id)

        return Status(
            election_id=election_id,
            state=record.state,
            ballots_received=record.ballots_received,
            finalization_failed=record.finalization_error is not None,
        )

    def result(self, election_id: str) -> Result:
        result = self.store.get_result(election_id)
        if result is not None:
            return result

        record = self.load_record(election_id)
        if not record.closed:
            raise NotReady(f"election {election_id} is still open")
        if record.finalization_error is not None:
            raise DecryptionError(record.finalization_error)

        raise NotReady(f"result for election {election_id} is being produced")
