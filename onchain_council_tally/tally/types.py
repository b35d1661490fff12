"""
Plain data shared by the reconstruction pipeline.

All stake values are integers in the smallest on-chain unit (micro units).
Conversion to display units only happens when results leave the pipeline.
"""
import enum
from dataclasses import dataclass, field
from typing import Mapping, Optional

VoterId = int


class Choice(str, enum.Enum):
    YES = "yes"
    NO = "no"
    ABSTAIN = "abstain"


# positional vote codes used inside voting notes
VOTE_CODES = {
    "a": Choice.YES,
    "b": Choice.NO,
    "c": Choice.ABSTAIN,
}


@dataclass(frozen=True)
class Candidate:
    name: str
    address: str


@dataclass(frozen=True)
class IndexerTransaction:
    """
    A transaction as delivered by the indexer. Never mutated.
    """

    id: str
    sender: str
    submitted_at_seconds: int
    note: Optional[str] = None
    confirmed_round: int = 0
    intra_round_offset: int = 0

    @property
    def submitted_at_millis(self) -> int:
        return self.submitted_at_seconds * 1000

    @property
    def order_key(self):
        """
        Total order over transactions. Submission time first, then the position
        on chain, then the transaction id so that equal timestamps never depend
        on the order in which pages were fetched.
        """
        return (
            self.submitted_at_seconds,
            self.confirmed_round,
            self.intra_round_offset,
            self.id,
        )

    @classmethod
    def from_indexer(cls, tx: dict) -> "IndexerTransaction":
        return cls(
            id=tx["id"],
            sender=tx["sender"],
            submitted_at_seconds=int(tx["round-time"]),
            note=tx.get("note"),
            confirmed_round=int(tx.get("confirmed-round", 0)),
            intra_round_offset=int(tx.get("intra-round-offset", 0)),
        )


@dataclass(frozen=True)
class Ballot:
    voter_id: VoterId
    candidate_name: str
    choice: Choice
    stake_at_assignment: int
    cast_at_millis: int
    source_transaction_id: str


@dataclass(frozen=True)
class CandidateTally:
    """
    Derived view of all ballots for one candidate
    """

    name: str
    address: str
    ballots: tuple = ()
    stake_yes: int = 0
    stake_no: int = 0
    stake_abstain: int = 0

    @property
    def total_stake(self) -> int:
        return self.stake_yes + self.stake_no + self.stake_abstain

    @property
    def net_stake(self) -> int:
        return self.stake_yes - self.stake_no

    @property
    def unique_voters(self) -> int:
        return len({b.voter_id for b in self.ballots})


@dataclass(frozen=True)
class VotingStats:
    total_votes: int
    unique_voters: int
    total_stake: int
    participation_rate: float
    total_registered: int
    total_non_voters: int


@dataclass(frozen=True)
class TallyResult:
    candidates: tuple
    stats: VotingStats

    def candidate(self, name: str) -> CandidateTally:
        for c in self.candidates:
            if c.name == name:
                return c
        raise KeyError(name)


@dataclass(frozen=True)
class TimeSeriesPoint:
    timestamp_millis: int
    per_candidate_net_stake: Mapping[str, int] = field(default_factory=dict)
