"""
Aggregation of the ballot set into tallies and statistics.

Everything in here is a pure function of its arguments and is recomputed from
the canonical ballot set whenever a view is requested.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from .registry import VoterRegistry
from .stake_ledger import StakeLedger
from .types import (
    Ballot,
    Candidate,
    CandidateTally,
    Choice,
    TallyResult,
    VotingStats,
)

_LOGGER = logging.getLogger(__name__)

MICRO_UNITS = 1_000_000


def participation_rate(unique_voters: int, total_registered: int) -> float:
    if total_registered <= 0:
        return 0.0
    return max(0.0, min(100.0, unique_voters / total_registered * 100))


def aggregate(
    ballots: Iterable[Ballot],
    roster: Sequence[Candidate],
    ledger: StakeLedger,
    registry: VoterRegistry,
) -> TallyResult:
    """
    Fold ballots into per candidate tallies and global statistics.
    :param ballots: the reconstructed ballot set
    :param roster: ordered candidates, candidates without ballots are included
    :param ledger: source of the eligible universe and the registered count
    :param registry: maps the voter ids of the ballots back to addresses
    """
    ballots = tuple(ballots)
    per_candidate = defaultdict(list)
    for ballot in ballots:
        per_candidate[ballot.candidate_name].append(ballot)

    tallies = []
    for candidate in roster:
        candidate_ballots = tuple(per_candidate.get(candidate.name, ()))
        sums = {choice: 0 for choice in Choice}
        for ballot in candidate_ballots:
            sums[ballot.choice] += ballot.stake_at_assignment
        tallies.append(
            CandidateTally(
                name=candidate.name,
                address=candidate.address,
                ballots=candidate_ballots,
                stake_yes=sums[Choice.YES],
                stake_no=sums[Choice.NO],
                stake_abstain=sums[Choice.ABSTAIN],
            )
        )

    voter_ids = {b.voter_id for b in ballots}
    unique_voters = len(voter_ids)
    voted = {registry.address_of(v) for v in voter_ids}
    eligible = ledger.eligible_addresses()
    total_registered = ledger.total_registered
    stats = VotingStats(
        total_votes=len(ballots),
        unique_voters=unique_voters,
        total_stake=sum(ledger.corrected_stake(a) for a in eligible),
        participation_rate=participation_rate(unique_voters, total_registered),
        total_registered=total_registered,
        total_non_voters=sum(1 for a in eligible if a not in voted),
    )
    return TallyResult(candidates=tuple(tallies), stats=stats)


def sort_by_unique_voters(tallies: Iterable[CandidateTally]) -> List[CandidateTally]:
    return sorted(tallies, key=lambda t: t.unique_voters, reverse=True)


def check_expected_total(
    actual: int, expected: Optional[int], tolerance: float = 0.01
) -> bool:
    """
    Compare a computed stake total with an independently estimated one.
    Deviations are only reported, the estimate itself may be off.
    """
    if expected is None or expected <= 0:
        return True
    deviation = abs(actual - expected) / expected
    if deviation > tolerance:
        _LOGGER.warning(
            f"Total stake {actual / MICRO_UNITS:.2f} deviates {deviation * 100:.2f}% "
            f"from expected {expected / MICRO_UNITS:.2f}"
        )
        return False
    return True


@dataclass(frozen=True)
class VoterStake:
    voter_id: int
    address: str
    yes: int
    no: int
    abstain: int

    @property
    def total(self) -> int:
        return self.yes + self.no + self.abstain


def voter_breakdown(
    tally: CandidateTally, registry: VoterRegistry, min_stake: int = 0
) -> List[VoterStake]:
    """
    Stake per voter for one candidate, largest first.
    Voters without any stake, or below min_stake, are left out.
    """
    groups = defaultdict(lambda: {choice: 0 for choice in Choice})
    for ballot in tally.ballots:
        groups[ballot.voter_id][ballot.choice] += ballot.stake_at_assignment
    res = [
        VoterStake(
            voter_id=voter_id,
            address=registry.address_of(voter_id),
            yes=stakes[Choice.YES],
            no=stakes[Choice.NO],
            abstain=stakes[Choice.ABSTAIN],
        )
        for voter_id, stakes in groups.items()
    ]
    res = [v for v in res if v.total > 0 and v.total >= min_stake]
    res.sort(key=lambda v: (-v.total, v.voter_id))
    return res


@dataclass(frozen=True)
class NonVoter:
    address: str
    stake: int


def non_voters(
    ballots: Iterable[Ballot], ledger: StakeLedger, registry: VoterRegistry
) -> List[NonVoter]:
    voted = {registry.address_of(b.voter_id) for b in ballots}
    res = [
        NonVoter(address=address, stake=ledger.corrected_stake(address))
        for address in ledger.eligible_addresses()
        if address not in voted
    ]
    res.sort(key=lambda n: (-n.stake, n.address))
    return res


# upper bounds in display units, a stake belongs to the first bucket it fits in
STAKE_BUCKETS = (
    ("0-100", 100),
    ("100-1K", 1_000),
    ("1K-10K", 10_000),
    ("10K-100K", 100_000),
    ("100K-1M", 1_000_000),
    ("1M-10M", 10_000_000),
    ("10M-100M", 100_000_000),
    ("100M+", None),
)


@dataclass(frozen=True)
class StakeBucket:
    label: str
    yes: int
    no: int
    abstain: int
    voter_count: int

    @property
    def total(self) -> int:
        return self.yes + self.no + self.abstain

    def share(self, choice: Choice) -> float:
        if not self.total:
            return 0.0
        return getattr(self, choice.value) / self.total


def stake_buckets(tally: CandidateTally) -> List[StakeBucket]:
    """
    Group the ballots of a candidate by the size of the voter's stake.
    """
    grouped = {label: [] for label, _ in STAKE_BUCKETS}
    for ballot in tally.ballots:
        for label, bound in STAKE_BUCKETS:
            if bound is None or ballot.stake_at_assignment <= bound * MICRO_UNITS:
                grouped[label].append(ballot)
                break
    res = []
    for label, _ in STAKE_BUCKETS:
        bucket_ballots = grouped[label]
        sums = {choice: 0 for choice in Choice}
        for ballot in bucket_ballots:
            sums[ballot.choice] += ballot.stake_at_assignment
        res.append(
            StakeBucket(
                label=label,
                yes=sums[Choice.YES],
                no=sums[Choice.NO],
                abstain=sums[Choice.ABSTAIN],
                voter_count=len(bucket_ballots),
            )
        )
    return res


def popular_vote(
    tally: CandidateTally, ledger: StakeLedger, registry: VoterRegistry
) -> dict:
    """
    Head count of the eligible governors for one candidate, regardless of stake.
    """
    counts = {choice.value: 0 for choice in Choice}
    counts["none"] = 0
    by_address = {registry.address_of(b.voter_id): b.choice for b in tally.ballots}
    for address in ledger.eligible_addresses():
        choice = by_address.pop(address, None)
        counts[choice.value if choice else "none"] += 1
    # voters outside the eligible table still count towards their choice
    for choice in by_address.values():
        counts[choice.value] += 1
    return counts
