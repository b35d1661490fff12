"""
Replay of the full voting history into point in time snapshots.

The replay walks all voting transactions in chronological order and keeps the
current ballot of every voter. A new vote first removes the voter's previous
contribution, so every snapshot equals a reconstruction from scratch up to
that point in time.
"""
import logging
import math
from types import MappingProxyType
from typing import Dict, Iterable, List, Sequence

from .reconstruct import VoteReconstructor, voting_transactions
from .registry import VoterRegistry
from .stake_ledger import StakeLedger
from .types import Ballot, Candidate, Choice, IndexerTransaction, TimeSeriesPoint

_LOGGER = logging.getLogger(__name__)

DEFAULT_TARGET_BUCKETS = 200
DEFAULT_MIN_BUCKET_MILLIS = 60_000


def bucket_boundaries(
    start_millis: int,
    end_millis: int,
    target_buckets: int = DEFAULT_TARGET_BUCKETS,
    min_bucket_millis: int = DEFAULT_MIN_BUCKET_MILLIS,
) -> List[int]:
    """
    Split the window into at most target_buckets buckets of at least
    min_bucket_millis each. Both ends of the window are boundaries.
    """
    if end_millis < start_millis:
        raise ValueError(f"Window ends before it starts: {start_millis} > {end_millis}")
    if target_buckets < 1:
        raise ValueError("At least one bucket is required")
    if end_millis == start_millis:
        return [start_millis]
    width = max(
        min_bucket_millis, math.ceil((end_millis - start_millis) / target_buckets), 1
    )
    return list(range(start_millis, end_millis, width)) + [end_millis]


class TimeSeriesReplayer:
    def __init__(
        self,
        roster: Sequence[Candidate],
        registry: VoterRegistry,
        ledger: StakeLedger,
    ):
        self.roster = tuple(roster)
        self._reconstructor = VoteReconstructor(roster, registry, ledger)
        self._current: Dict[str, List[Ballot]] = {}
        self._yes: Dict[str, int] = {}
        self._no: Dict[str, int] = {}
        self._reset()

    def _reset(self):
        self._current = {}
        self._yes = {c.name: 0 for c in self.roster}
        self._no = {c.name: 0 for c in self.roster}

    def _add(self, ballots: Iterable[Ballot], sign: int):
        for ballot in ballots:
            if ballot.choice == Choice.YES:
                self._yes[ballot.candidate_name] += sign * ballot.stake_at_assignment
            elif ballot.choice == Choice.NO:
                self._no[ballot.candidate_name] += sign * ballot.stake_at_assignment

    def _apply(self, tx: IndexerTransaction, note):
        new_ballots = self._reconstructor.materialize(tx, note)
        self._add(self._current.get(tx.sender, ()), -1)
        self._add(new_ballots, 1)
        self._current[tx.sender] = new_ballots

    def net_stakes(self) -> Dict[str, int]:
        return {c.name: self._yes[c.name] - self._no[c.name] for c in self.roster}

    def replay(
        self, transactions: Iterable[IndexerTransaction], boundaries: Iterable[int]
    ) -> tuple:
        """
        Produce one point per boundary. Transactions at or before a boundary
        are included in its snapshot, later ones are not.
        """
        self._reset()
        pairs = sorted(voting_transactions(transactions), key=lambda p: p[0].order_key)
        points = []
        i = 0
        for boundary in sorted(set(boundaries)):
            while i < len(pairs) and pairs[i][0].submitted_at_millis <= boundary:
                self._apply(*pairs[i])
                i += 1
            points.append(
                TimeSeriesPoint(
                    timestamp_millis=boundary,
                    per_candidate_net_stake=MappingProxyType(self.net_stakes()),
                )
            )
        _LOGGER.info(
            f"Replayed {i} of {len(pairs)} voting transactions into {len(points)} points"
        )
        return tuple(points)

    def replay_window(
        self,
        transactions: Iterable[IndexerTransaction],
        start_millis: int,
        end_millis: int,
        target_buckets: int = DEFAULT_TARGET_BUCKETS,
        min_bucket_millis: int = DEFAULT_MIN_BUCKET_MILLIS,
    ) -> tuple:
        return self.replay(
            transactions,
            bucket_boundaries(start_millis, end_millis, target_buckets, min_bucket_millis),
        )
