"""
Reconstruction of the current ballot set.

Each voting transaction carries the sender's complete ballot over the whole
roster. Only the latest voting transaction of a sender counts and it replaces
everything the sender voted before.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence

from .note import VotingNote, decode_note
from .registry import VoterRegistry
from .stake_ledger import StakeLedger
from .types import VOTE_CODES, Ballot, Candidate, IndexerTransaction

_LOGGER = logging.getLogger(__name__)


@dataclass
class ReconstructionStats:
    voting_transactions: int = 0
    latest_transactions: int = 0
    malformed_payloads: int = 0
    ballots: int = 0


def voting_transactions(
    transactions: Iterable[IndexerTransaction],
) -> List[tuple]:
    """
    Pair every transaction carrying a voting note with its decoded note.
    """
    res = []
    for tx in transactions:
        if not tx.note:
            continue
        note = decode_note(tx.note)
        if isinstance(note, VotingNote):
            res.append((tx, note))
    return res


class VoteReconstructor:
    def __init__(
        self,
        roster: Sequence[Candidate],
        registry: VoterRegistry,
        ledger: StakeLedger,
    ):
        self.roster = tuple(roster)
        self.registry = registry
        self.ledger = ledger
        self.stats = ReconstructionStats()

    def select_latest(
        self, transactions: Iterable[IndexerTransaction]
    ) -> List[tuple]:
        """
        Phase A: keep one voting transaction per sender, the latest one.
        """
        latest: Dict[str, tuple] = {}
        count = 0
        for tx, note in voting_transactions(transactions):
            count += 1
            prev = latest.get(tx.sender)
            if prev is None or tx.order_key > prev[0].order_key:
                latest[tx.sender] = (tx, note)
        self.stats.voting_transactions = count
        self.stats.latest_transactions = len(latest)
        return sorted(latest.values(), key=lambda p: p[0].order_key)

    def materialize(self, tx: IndexerTransaction, note: VotingNote) -> List[Ballot]:
        """
        Phase B: turn the positional vote codes into ballots.
        Slot 0 is the discriminator, slot i + 1 belongs to roster[i].
        """
        payload = note.payload
        if len(payload) != len(self.roster) + 1:
            _LOGGER.debug(
                f"Voting payload of {tx.id} has {len(payload)} slots, expected {len(self.roster) + 1}"
            )
            self.stats.malformed_payloads += 1
            return []
        voter_id = self.registry.id_of(tx.sender)
        stake = self.ledger.corrected_stake(tx.sender)
        ballots = []
        for candidate, code in zip(self.roster, payload[1:]):
            if not isinstance(code, str):
                continue
            choice = VOTE_CODES.get(code)
            if choice is None:
                continue
            ballots.append(
                Ballot(
                    voter_id=voter_id,
                    candidate_name=candidate.name,
                    choice=choice,
                    stake_at_assignment=stake,
                    cast_at_millis=tx.submitted_at_millis,
                    source_transaction_id=tx.id,
                )
            )
        return ballots

    def reconstruct(self, transactions: Iterable[IndexerTransaction]) -> tuple:
        self.stats = ReconstructionStats()
        ballots = []
        for tx, note in self.select_latest(transactions):
            ballots.extend(self.materialize(tx, note))
        self.stats.ballots = len(ballots)
        _LOGGER.info(
            f"Reconstructed {len(ballots)} ballots from {self.stats.latest_transactions} latest "
            f"of {self.stats.voting_transactions} voting transactions "
            f"({self.stats.malformed_payloads} malformed)"
        )
        return tuple(ballots)
