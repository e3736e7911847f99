"""Paillier key material and ciphertext helpers.

Ballots are encrypted with the Paillier scheme (via ``phe``): a yes vote is
Enc(1), a no vote is Enc(0). Multiplying two ciphertexts modulo n^2 yields
the encryption of the sum of their plaintexts, which is what lets the
accumulator tally without decrypting any individual ballot.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Any, Dict

from phe import paillier

from .errors import InvalidCiphertext

# Enc(0) with r = 1; the neutral element of ciphertext multiplication
ENCRYPTED_ZERO = 1


def fingerprint(n: int) -> str:
    """Return the hex SHA-256 of the decimal modulus."""

    return hashlib.sha256(str(n).encode("ascii")).hexdigest()


@dataclass(frozen=True)
class PublicKey:
    """Public half of an election key

    Attributes
    - election_id: election the key was issued for
    - n: modulus p*q
    - g: generator, always n + 1
    """

    election_id: str
    n: int
    g: int

    @property
    def nsquare(self) -> int:
        return self.n * self.n

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.n)

    def to_phe(self) -> paillier.PaillierPublicKey:
        return paillier.PaillierPublicKey(self.n)

    def to_wire(self) -> Dict[str, str]:
        return {"n": str(self.n), "g": str(self.g), "pk_fingerprint": self.fingerprint}

    @classmethod
    def from_wire(cls, election_id: str, data: Dict[str, Any]) -> "PublicKey":
        return cls(election_id=election_id, n=int(data["n"]), g=int(data["g"]))


@dataclass(frozen=True)
class ElectionKey:
    """Full Paillier keypair for one election

    Only KeyManager and the store it writes to ever hold this object; the
    rest of the system works with ``public()``.
    """

    election_id: str
    n: int
    p: int
    q: int

    @property
    def g(self) -> int:
        return self.n + 1

    def public(self) -> PublicKey:
        return PublicKey(election_id=self.election_id, n=self.n, g=self.g)

    def to_phe(self) -> paillier.PaillierPrivateKey:
        return paillier.PaillierPrivateKey(self.public().to_phe(), self.p, self.q)


def generate_election_key(election_id: str, key_bits: int) -> ElectionKey:
    """Generate a fresh keypair whose primes are each ``key_bits`` long."""

    pub, priv = paillier.generate_paillier_keypair(n_length=2 * key_bits)

    return ElectionKey(election_id=election_id, n=pub.n, p=priv.p, q=priv.q)


def parse_ciphertext(value: Any) -> int:
    """Decode a wire ciphertext (decimal string or int) into an int."""

    if isinstance(value, bool):
        raise InvalidCiphertext("ciphertext must be a decimal integer")
    if isinstance(value, int):
        return value
    if not isinstance(value, str) or not value.strip().isdecimal():
        raise InvalidCiphertext("ciphertext must be a decimal integer")

    try:
        return int(value.strip())
    except ValueError:
        # longer than the interpreter allows for int() conversion
        raise InvalidCiphertext("ciphertext must be a decimal integer") from None


def validate_ciphertext(pub: PublicKey, c: int) -> None:
    """Reject anything that is not an element of Z*_{n^2}."""

    if not 0 <= c < pub.nsquare:
        raise InvalidCiphertext("ciphertext outside [0, n^2)")
    if math.gcd(c, pub.n) != 1:
        raise InvalidCiphertext("ciphertext is not coprime with n")


def encrypt_plaintext(pub: PublicKey, m: int, r: int | None = None) -> int:
    """Raw Paillier encryption of an integer, returning the ciphertext int."""

    return pub.to_phe().raw_encrypt(m, r_value=r)


def encrypt_choice(pub: PublicKey, yes: bool) -> str:
    """Client-side ballot encryption: yes -> Enc(1), no -> Enc(0).

    Returns the ciphertext in wire form (decimal string).
    """

    return str(encrypt_plaintext(pub, 1 if yes else 0))


def fold(pub: PublicKey, encrypted_sum: int, c: int) -> int:
    """Homomorphically add ciphertext ``c`` into ``encrypted_sum``

    Enc(a) * Enc(b) mod n^2 = Enc(a + b).
    """

    phe_pub = pub.to_phe()
    total = paillier.EncryptedNumber(phe_pub, encrypted_sum) + paillier.EncryptedNumber(phe_pub, c)

    return total.ciphertext(be_secure=False)
