"""Error taxonomy shared by the tallying core and the HTTP layer.

Each error carries a short machine-readable ``code`` and the HTTP status the
API answers with. Messages never contain plaintext votes or key material.
"""


class TallyError(Exception):
    code = "tally_error"
    http_status = 500


class AlreadyExists(TallyError):
    """A key for this election was already issued."""

    code = "already_exists"
    http_status = 409


class NotFound(TallyError):
    code = "not_found"
    http_status = 404


class InvalidCiphertext(TallyError):
    """The submitted ciphertext is malformed or outside Z*_{n^2}."""

    code = "invalid_ciphertext"
    http_status = 400


class DuplicateVote(TallyError):
    code = "duplicate_vote"
    http_status = 403


class ElectionClosed(TallyError):
    code = "election_closed"
    http_status = 409


class QuorumExceeded(TallyError):
    """The roster has no eligible slot left for another ballot."""

    code = "quorum_exceeded"
    http_status = 409


class NotReady(TallyError):
    """The election is not closed yet, or its result is still being produced."""

    code = "not_ready"
    http_status = 202


class DecryptionError(TallyError):
    """The decrypted sum is incoherent with the number of admitted ballots.

    Fatal: the election stays closed without a result until an operator
    intervenes.
    """

    code = "decryption_error"
    http_status = 500
