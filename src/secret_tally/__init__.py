"""secret_tally - homomorphic secret-ballot tallying for yes/no elections

Voters encrypt their choice under a per-election Paillier key; the service
folds ciphertexts into an encrypted sum and only decrypts that sum once
every eligible voter has cast a ballot.
"""

from .errors import (
    AlreadyExists,
    DecryptionError,
    DuplicateVote,
    ElectionClosed,
    InvalidCiphertext,
    NotFound,
    NotReady,
    QuorumExceeded,
    TallyError,
)
from .models import ElectionState, Receipt, Result, Status
from .secrecy import PublicKey, encrypt_choice
from .service import TallyService, build_service

__all__ = [
    "AlreadyExists",
    "DecryptionError",
    "DuplicateVote",
    "ElectionClosed",
    "ElectionState",
    "InvalidCiphertext",
    "NotFound",
    "NotReady",
    "PublicKey",
    "QuorumExceeded",
    "Receipt",
    "Result",
    "Status",
    "TallyError",
    "TallyService",
    "build_service",
    "encrypt_choice",
]
