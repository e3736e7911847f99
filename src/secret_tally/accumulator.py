"""BallotAccumulator: admits encrypted ballots and folds them into the tally.

For one election, the sequence {closed check, duplicate check, ciphertext
check, fold, count, closure evaluation, persist} runs under that election's
lock. A voter id is recorded in the same step as its fold.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .errors import DuplicateVote, ElectionClosed, InvalidCiphertext, QuorumExceeded
from .keys import KeyManager
from .models import Receipt
from .roster import StaticRoster
from .secrecy import fold, parse_ciphertext, validate_ciphertext
from .state import ElectionStateMachine
from .store import ElectionStore

logger = logging.getLogger(__name__)


class BallotAccumulator:
    def __init__(
        self,
        store: ElectionStore,
        keys: KeyManager,
        state: ElectionStateMachine,
        roster: StaticRoster,
    ):
        self.store = store
        self.keys = keys
        self.state = state
        self.roster = roster

    def submit(
        self,
        election_id: str,
        voter_id: str,
        ciphertext: Any,
        pk_fingerprint: Optional[str] = None,
    ) -> Receipt:
        """Admit one encrypted ballot.

        Args
        - election_id: target election
        - voter_id: opaque id from the identity collaborator
        - ciphertext: Paillier ciphertext as int or decimal string
        - pk_fingerprint: optional fingerprint of the key the voter encrypted under

        Raises NotFound, ElectionClosed, DuplicateVote, InvalidCiphertext or
        QuorumExceeded without mutating anything. If this ballot closes the
        election and decryption fails, DecryptionError propagates after the
        ballot has been counted.
        """

        # slow reads stay outside the critical section
        pub = self.keys.get_public_key(election_id)
        eligible = self.roster.eligible_count(election_id)

        with self.state.locks.lock_for(election_id):
            record = self.state.load_record(election_id)
            if record.closed:
                logger.warning("Ballot for closed election %s rejected", election_id)
                raise ElectionClosed(f"election {election_id} is closed")
            if voter_id in record.voters:
                logger.warning("Duplicate vote attempt in election %s", election_id)
                raise DuplicateVote(f"voter already voted in election {election_id}")

            try:
                if pk_fingerprint is not None and pk_fingerprint != pub.fingerprint:
                    raise InvalidCiphertext("ballot was encrypted under a different key")
                c = parse_ciphertext(ciphertext)
                validate_ciphertext(pub, c)
            except InvalidCiphertext as exc:
                logger.warning("Invalid ballot for election %s: %s", election_id, exc)
                raise

            if record.ballots_received >= eligible:
                raise QuorumExceeded(
                    f"election {election_id} has {record.ballots_received} ballots "
                    f"for {eligible} eligible voters"
                )

            record.encrypted_sum = fold(pub, record.encrypted_sum, c)
            record.ballots_received += 1
            record.voters.add(voter_id)
            closed_now = self.state.evaluate(record, eligible)
            self.store.put_tally(record)
            received = record.ballots_received

        logger.info("Ballot %d/%d admitted for election %s", received, eligible, election_id)
        if closed_now:
            self.state.finalize(election_id)

        return Receipt(
            election_id=election_id,
            voter_id=voter_id,
            ballots_received=received,
            closed=closed_now,
        )
