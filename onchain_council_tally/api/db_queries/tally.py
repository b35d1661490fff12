import dataclasses
from typing import Optional

from ...tally.aggregate import (
    MICRO_UNITS,
    non_voters,
    popular_vote,
    sort_by_unique_voters,
    stake_buckets,
    voter_breakdown,
)
from ...tally.pipeline import TallySnapshot, run_refresh
from ...tally.stake_ledger import AmountRow, AmountTable
from ...tally.types import CandidateTally, Choice, IndexerTransaction
from .. import config
from ..db_models import (
    ELIGIBLE,
    REGISTRATION,
    WITHDRAWAL,
    IndexedTransaction,
    Refresh,
    StakeTableDiagnostics,
    StakeTableRow,
)
from ..util import to_display_units, truncate_address

# snapshot of the latest stored refresh, rebuilt when a new refresh lands
_snapshot_cache = {"refresh_id": None, "snapshot": None}


def clear_snapshot_cache():
    _snapshot_cache.update(refresh_id=None, snapshot=None)


def latest_refresh() -> Optional[Refresh]:
    return Refresh.select().order_by(Refresh.id.desc()).first()


def _load_table(kind: str) -> Optional[AmountTable]:
    diagnostics = StakeTableDiagnostics.get_or_none(StakeTableDiagnostics.kind == kind)
    if diagnostics is None:
        return None
    rows = (
        StakeTableRow.select()
        .where(StakeTableRow.kind == kind)
        .order_by(StakeTableRow.position)
    )
    return AmountTable(
        rows=[
            AmountRow(
                address=r.address, amount=r.amount, transaction_id=r.transaction_id
            )
            for r in rows
        ],
        skipped_rows=diagnostics.skipped_rows,
    )


def _load_transactions():
    return [
        IndexerTransaction(
            id=t.transaction_id,
            sender=t.sender,
            submitted_at_seconds=t.round_time,
            note=t.note,
            confirmed_round=t.confirmed_round,
            intra_round_offset=t.intra_round_offset,
        )
        for t in IndexedTransaction.select().order_by(IndexedTransaction.id)
    ]


def load_snapshot() -> Optional[TallySnapshot]:
    """
    Rebuild the tally snapshot from the stored inputs of the latest refresh.
    :return: None if no refresh has been stored yet
    """
    db_refresh = latest_refresh()
    if db_refresh is None:
        return None
    if _snapshot_cache["refresh_id"] == db_refresh.id:
        return _snapshot_cache["snapshot"]
    window = None
    if db_refresh.window_start is not None and db_refresh.window_end is not None:
        window = (db_refresh.window_start, db_refresh.window_end)
    snapshot = run_refresh(
        _load_transactions(),
        _load_table(REGISTRATION) or AmountTable(),
        _load_table(WITHDRAWAL) or AmountTable(),
        config.roster,
        eligible=_load_table(ELIGIBLE),
        window=window,
        target_buckets=config.timeseries_buckets,
        min_bucket_millis=config.timeseries_min_bucket_millis,
        expected_total_stake=config.expected_total_stake,
        expected_total_tolerance=config.expected_total_tolerance,
    )
    _snapshot_cache.update(refresh_id=db_refresh.id, snapshot=snapshot)
    return snapshot


def _find_candidate(
    snapshot: TallySnapshot, candidate: str
) -> Optional[CandidateTally]:
    try:
        return snapshot.result.candidate(candidate)
    except KeyError:
        return None


def _serialize_tally(tally: CandidateTally):
    return {
        "name": tally.name,
        "address": tally.address,
        "votes": len(tally.ballots),
        "unique_voters": tally.unique_voters,
        "yes_stake": to_display_units(tally.stake_yes),
        "no_stake": to_display_units(tally.stake_no),
        "abstain_stake": to_display_units(tally.stake_abstain),
        "total_stake": to_display_units(tally.total_stake),
        "net_stake": to_display_units(tally.net_stake),
    }


def query_tallies(sort_by_voters: bool = False):
    """
    Query the per candidate tallies.
    :param sort_by_voters: Order candidates by unique voters instead of roster order.
    :return:
    """
    snapshot = load_snapshot()
    if snapshot is None:
        return []
    tallies = snapshot.result.candidates
    if sort_by_voters:
        tallies = sort_by_unique_voters(tallies)
    return [_serialize_tally(t) for t in tallies]


def query_stats():
    snapshot = load_snapshot()
    if snapshot is None:
        return None
    stats = snapshot.result.stats
    return {
        "total_votes": stats.total_votes,
        "total_stake": to_display_units(stats.total_stake),
        "unique_voters": stats.unique_voters,
        "participation_rate": stats.participation_rate,
        "total_registered": stats.total_registered,
        "total_non_voters": stats.total_non_voters,
        "diagnostics": dataclasses.asdict(snapshot.diagnostics),
    }


def query_timeseries():
    snapshot = load_snapshot()
    if snapshot is None:
        return []
    return [
        {
            "timestamp": point.timestamp_millis,
            "net_stake": {
                name: to_display_units(value)
                for name, value in point.per_candidate_net_stake.items()
            },
        }
        for point in snapshot.timeseries
    ]


def query_candidate_voters(candidate: str, min_stake: float = 0):
    """
    Query the stake of every voter of a candidate, largest first.
    :param candidate: Name of the candidate.
    :param min_stake: Only include voters with at least this stake, in display units.
    :return: None if the candidate is unknown
    """
    snapshot = load_snapshot()
    if snapshot is None:
        return []
    tally = _find_candidate(snapshot, candidate)
    if tally is None:
        return None
    voters = voter_breakdown(
        tally, snapshot.registry, min_stake=int(min_stake * MICRO_UNITS)
    )
    return [
        {
            "address": v.address,
            "truncated_address": truncate_address(v.address),
            "yes": to_display_units(v.yes),
            "no": to_display_units(v.no),
            "abstain": to_display_units(v.abstain),
            "total": to_display_units(v.total),
        }
        for v in voters
    ]


def query_stake_breakdown(candidate: str):
    snapshot = load_snapshot()
    if snapshot is None:
        return []
    tally = _find_candidate(snapshot, candidate)
    if tally is None:
        return None
    return [
        {
            "label": b.label,
            "voter_count": b.voter_count,
            "total_stake": to_display_units(b.total),
            "yes_stake": to_display_units(b.yes),
            "no_stake": to_display_units(b.no),
            "abstain_stake": to_display_units(b.abstain),
            "yes_share": b.share(Choice.YES),
            "no_share": b.share(Choice.NO),
            "abstain_share": b.share(Choice.ABSTAIN),
        }
        for b in stake_buckets(tally)
    ]


def query_popular_vote(candidate: str):
    snapshot = load_snapshot()
    if snapshot is None:
        return {}
    tally = _find_candidate(snapshot, candidate)
    if tally is None:
        return None
    return popular_vote(tally, snapshot.ledger, snapshot.registry)


def query_non_voters():
    snapshot = load_snapshot()
    if snapshot is None:
        return {"total_stake": 0, "non_voters": []}
    res = non_voters(snapshot.ballots, snapshot.ledger, snapshot.registry)
    return {
        "total_stake": to_display_units(sum(n.stake for n in res)),
        "non_voters": [
            {
                "address": n.address,
                "truncated_address": truncate_address(n.address),
                "stake": to_display_units(n.stake),
            }
            for n in res
        ],
    }
