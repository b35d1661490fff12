"""
One refresh cycle over already fetched inputs.

The snapshot is built completely before it is handed out, so consumers either
see the previous snapshot or the new one, never a partial one.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

from .aggregate import aggregate, check_expected_total
from .note import RegistrationNote, VotingNote, decode_note
from .reconstruct import VoteReconstructor
from .registry import VoterRegistry
from .stake_ledger import AmountTable, StakeLedger
from .timeseries import (
    DEFAULT_MIN_BUCKET_MILLIS,
    DEFAULT_TARGET_BUCKETS,
    TimeSeriesReplayer,
)
from .types import Candidate, TallyResult

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefreshDiagnostics:
    transactions: int = 0
    registration_notes: int = 0
    voting_notes: int = 0
    unknown_notes: int = 0
    latest_voting_transactions: int = 0
    malformed_voting_payloads: int = 0
    skipped_registration_rows: int = 0
    skipped_withdrawal_rows: int = 0
    skipped_eligible_rows: int = 0
    total_stake_consistent: bool = True


@dataclass(frozen=True)
class TallySnapshot:
    roster: tuple
    registry: VoterRegistry
    ledger: StakeLedger
    ballots: tuple
    result: TallyResult
    timeseries: tuple
    window: Optional[Tuple[int, int]] = None
    diagnostics: RefreshDiagnostics = field(default_factory=RefreshDiagnostics)


def count_notes(transactions) -> dict:
    counts = {"registration": 0, "voting": 0, "unknown": 0}
    for tx in transactions:
        note = decode_note(tx.note)
        if isinstance(note, RegistrationNote):
            counts["registration"] += 1
        elif isinstance(note, VotingNote):
            counts["voting"] += 1
        else:
            counts["unknown"] += 1
    return counts


def voting_window(transactions) -> Optional[Tuple[int, int]]:
    """
    Fallback replay window spanning the first and last voting transaction.
    """
    times = [
        tx.submitted_at_millis
        for tx in transactions
        if isinstance(decode_note(tx.note), VotingNote)
    ]
    if not times:
        return None
    return min(times), max(times)


def run_refresh(
    transactions,
    registration: AmountTable,
    withdrawal: AmountTable,
    roster: Sequence[Candidate],
    eligible: Optional[AmountTable] = None,
    window: Optional[Tuple[int, int]] = None,
    target_buckets: int = DEFAULT_TARGET_BUCKETS,
    min_bucket_millis: int = DEFAULT_MIN_BUCKET_MILLIS,
    expected_total_stake: Optional[int] = None,
    expected_total_tolerance: float = 0.01,
) -> TallySnapshot:
    """
    Reconstruct, aggregate and replay. A fresh registry and ledger are created
    for every call so nothing leaks from a previous cycle.
    """
    transactions = tuple(transactions)
    roster = tuple(roster)
    registry = VoterRegistry()
    ledger = StakeLedger()
    ledger.load(
        registration.amounts,
        withdrawal.amounts,
        eligible.addresses if eligible is not None else None,
    )

    reconstructor = VoteReconstructor(roster, registry, ledger)
    ballots = reconstructor.reconstruct(transactions)
    result = aggregate(ballots, roster, ledger, registry)
    consistent = check_expected_total(
        result.stats.total_stake, expected_total_stake, expected_total_tolerance
    )

    if window is None:
        window = voting_window(transactions)
    if window is None:
        timeseries = ()
    else:
        replayer = TimeSeriesReplayer(roster, registry, ledger)
        timeseries = replayer.replay_window(
            transactions, window[0], window[1], target_buckets, min_bucket_millis
        )

    notes = count_notes(transactions)
    diagnostics = RefreshDiagnostics(
        transactions=len(transactions),
        registration_notes=notes["registration"],
        voting_notes=notes["voting"],
        unknown_notes=notes["unknown"],
        latest_voting_transactions=reconstructor.stats.latest_transactions,
        malformed_voting_payloads=reconstructor.stats.malformed_payloads,
        skipped_registration_rows=registration.skipped_rows,
        skipped_withdrawal_rows=withdrawal.skipped_rows,
        skipped_eligible_rows=eligible.skipped_rows if eligible is not None else 0,
        total_stake_consistent=consistent,
    )
    _LOGGER.info(
        f"Refresh produced {len(ballots)} ballots from {result.stats.unique_voters} voters, "
        f"{len(timeseries)} time series points"
    )
    return TallySnapshot(
        roster=roster,
        registry=registry,
        ledger=ledger,
        ballots=ballots,
        result=result,
        timeseries=timeseries,
        window=window,
        diagnostics=diagnostics,
    )
