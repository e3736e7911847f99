"""Records exchanged between the tallying components and the store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Set

from .secrecy import ENCRYPTED_ZERO


class ElectionState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class TallyRecord:
    """Mutable per-election accumulator state

    Attributes
    - election_id: the election this record belongs to
    - encrypted_sum: product of all admitted ciphertexts modulo n^2
    - ballots_received: number of admitted ballots
    - voters: voter ids already admitted (ciphertexts themselves are not kept)
    - state: lifecycle state, OPEN until the single closing transition
    - finalization_error: set when decrypting the closed tally failed
    """

    election_id: str
    encrypted_sum: int = ENCRYPTED_ZERO
    ballots_received: int = 0
    voters: Set[str] = field(default_factory=set)
    state: ElectionState = ElectionState.OPEN
    finalization_error: Optional[str] = None

    @property
    def closed(self) -> bool:
        return self.state is ElectionState.CLOSED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "encrypted_sum": str(self.encrypted_sum),
            "ballots_received": self.ballots_received,
            "voters": sorted(self.voters),
            "state": self.state.value,
            "finalization_error": self.finalization_error,
        }

    @classmethod
    def from_dict(cls, election_id: str, data: Dict[str, Any]) -> "TallyRecord":
        return cls(
            election_id=election_id,
            encrypted_sum=int(data["encrypted_sum"]),
            ballots_received=int(data["ballots_received"]),
            voters=set(data.get("voters", [])),
            state=ElectionState(data["state"]),
            finalization_error=data.get("finalization_error"),
        )

    def copy(self) -> "TallyRecord":
        return TallyRecord(
            election_id=self.election_id,
            encrypted_sum=self.encrypted_sum,
            ballots_received=self.ballots_received,
            voters=set(self.voters),
            state=self.state,
            finalization_error=self.finalization_error,
        )


@dataclass(frozen=True)
class Result:
    election_id: str
    yes_count: int
    no_count: int
    total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "election_id": self.election_id,
            "yes_count": self.yes_count,
            "no_count": self.no_count,
            "total": self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Result":
        return cls(
            election_id=str(data["election_id"]),
            yes_count=int(data["yes_count"]),
            no_count=int(data["no_count"]),
            total=int(data["total"]),
        )


@dataclass(frozen=True)
class Receipt:
    """Returned for every accepted ballot.

    ``closed`` tells the submitter whether this ballot completed the
    election.
    """

    election_id: str
    voter_id: str
    ballots_received: int
    closed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": "accepted",
            "election_id": self.election_id,
            "voter_id": self.voter_id,
            "ballots_received": self.ballots_received,
            "closed": self.closed,
        }


@dataclass(frozen=True)
class Status:
    election_id: str
    state: ElectionState
    ballots_received: int
    finalization_failed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "election_id": self.election_id,
            "state": self.state.value,
            "ballots_received": self.ballots_received,
            "finalization_failed": self.finalization_failed,
        }
