"""KeyManager: one Paillier keypair per election.

Keys are created once and never replaced: a second ``create_key`` for the
same election raises AlreadyExists and leaves the stored key as it was.
"""

import logging

from . import config
from .errors import AlreadyExists, InvalidCiphertext, NotFound
from .secrecy import ElectionKey, PublicKey, generate_election_key
from .store import ElectionStore

logger = logging.getLogger(__name__)


class KeyManager:
    def __init__(self, store: ElectionStore, key_bits: int = config.KEY_BITS):
        if key_bits < config.MIN_SAFE_KEY_BITS:
            logger.warning(
                "Using %d-bit primes; anything below %d is only fit for testing",
                key_bits,
                config.MIN_SAFE_KEY_BITS,
            )
        self.store = store
        self.key_bits = key_bits

    def create_key(self, election_id: str) -> PublicKey:
        """Generate, store and return the public half of a new election key.

        Raises AlreadyExists if the election already has a key; the stored
        key is left untouched.
        """

        if self.store.get_key(election_id) is not None:
            # add_key repeats this check atomically
            raise AlreadyExists(f"election {election_id} already has a key")

        key = generate_election_key(election_id, self.key_bits)
        self.store.add_key(key)
        logger.info("Issued %d-bit key for election %s", 2 * self.key_bits, election_id)

        return key.public()

    def get_public_key(self, election_id: str) -> PublicKey:
        return self._load(election_id).public()

    def decrypt(self, election_id: str, ciphertext: int) -> int:
        """Decrypt ``ciphertext`` under the election key, returning m mod n.

        Only the ResultDecoder calls this, and only on a closed tally.
        """

        key = self._load(election_id)
        if not 0 <= ciphertext < key.n * key.n:
            raise InvalidCiphertext("ciphertext outside [0, n^2)")

        return key.to_phe().raw_decrypt(ciphertext)

    def _load(self, election_id: str) -> ElectionKey:
        key = self.store.get_key(election_id)
        if key is None:
            raise NotFound(f"no key for election {election_id}")
        return key
