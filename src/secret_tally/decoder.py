"""ResultDecoder: turns a closed encrypted tally into yes/no counts."""

from .errors import DecryptionError, InvalidCiphertext, NotFound, NotReady
from .keys import KeyManager
from .models import Result
from .store import ElectionStore


class ResultDecoder:
    def __init__(self, store: ElectionStore, keys: KeyManager):
        self.store = store
        self.keys = keys

    def decrypt_and_finalize(self, election_id: str) -> Result:
        """Decrypt the accumulated sum of a closed election.

        Each admitted ballot encrypts 0 or 1 and there are far fewer ballots
        than n, so the decrypted sum S is exactly the number of yes votes.
        A value outside [0, ballots_received] means the accumulator and the
        key disagree; that is raised as DecryptionError and nothing is
        published.
        """

        record = self.store.get_tally(election_id)
        if record is None:
            raise NotFound(f"no tally for election {election_id}")
        if not record.closed:
            raise NotReady(f"election {election_id} is still open")

        try:
            yes = self.keys.decrypt(election_id, record.encrypted_sum)
        except InvalidCiphertext as exc:
            raise DecryptionError(f"stored sum for election {election_id} is corrupt: {exc}") from exc
        if not 0 <= yes <= record.ballots_received:
            raise DecryptionError(
                f"decrypted sum for election {election_id} is outside "
                f"[0, {record.ballots_received}]"
            )

        return Result(
            election_id=election_id,
            yes_count=yes,
            no_count=record.ballots_received - yes,
            total=record.ballots_received,
        )
