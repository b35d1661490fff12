from onchain_council_tally.tally.note import encode_note
from onchain_council_tally.tally.pipeline import count_notes, run_refresh, voting_window
from onchain_council_tally.tally.stake_ledger import AmountRow, AmountTable
from onchain_council_tally.tally.types import IndexerTransaction


def table(amounts, skipped_rows=0):
    return AmountTable(
        rows=[AmountRow(address=a, amount=v) for a, v in amounts.items()],
        skipped_rows=skipped_rows,
    )


def test_count_notes(vote_tx):
    txs = [
        vote_tx("X", 1, ["a", "b"]),
        IndexerTransaction("R1", "X", 1, note=encode_note({"com": 5})),
        IndexerTransaction("U1", "X", 1, note="bm90IGEgbm90ZQ=="),
        IndexerTransaction("U2", "X", 1),
    ]
    assert count_notes(txs) == {"registration": 1, "voting": 1, "unknown": 2}


def test_voting_window(vote_tx):
    assert voting_window([]) is None
    txs = [
        vote_tx("X", 30, ["a", "b"]),
        IndexerTransaction("R1", "X", 500, note=encode_note({"com": 5})),
        vote_tx("Y", 10, ["a", "b"]),
    ]
    assert voting_window(txs) == (10_000, 30_000)


def test_run_refresh(roster, vote_tx):
    txs = [
        vote_tx("X", 100, ["a", "b"]),
        vote_tx("X", 200, ["b", "a"]),
        vote_tx("Y", 150, ["a"]),
        IndexerTransaction("R1", "Z", 50, note=encode_note({"com": 5})),
    ]
    snapshot = run_refresh(
        txs,
        table({"X": 500, "Y": 100, "Z": 50}, skipped_rows=2),
        table({"Y": 40}),
        roster,
        window=(0, 300_000),
        target_buckets=3,
        min_bucket_millis=1,
        expected_total_stake=610,
    )
    result = snapshot.result
    assert result.candidate("A").net_stake == -500
    assert result.candidate("B").net_stake == 500
    assert result.stats.unique_voters == 1
    assert result.stats.total_registered == 3
    assert result.stats.total_stake == 610
    assert [p.timestamp_millis for p in snapshot.timeseries] == [
        0,
        100_000,
        200_000,
        300_000,
    ]
    assert dict(snapshot.timeseries[1].per_candidate_net_stake) == {
        "A": 500,
        "B": -500,
    }
    assert dict(snapshot.timeseries[-1].per_candidate_net_stake) == {
        "A": -500,
        "B": 500,
    }

    diagnostics = snapshot.diagnostics
    assert diagnostics.transactions == 4
    assert diagnostics.voting_notes == 3
    assert diagnostics.registration_notes == 1
    assert diagnostics.latest_voting_transactions == 2
    assert diagnostics.malformed_voting_payloads == 1
    assert diagnostics.skipped_registration_rows == 2
    assert diagnostics.total_stake_consistent


def test_run_refresh_without_votes(roster):
    snapshot = run_refresh([], table({"X": 1}), AmountTable(), roster)
    assert snapshot.ballots == ()
    assert snapshot.timeseries == ()
    assert snapshot.window is None
    assert snapshot.result.stats.total_non_voters == 1


def test_refresh_cycles_are_independent(roster, vote_tx):
    first = run_refresh(
        [vote_tx("X", 1, ["a", "a"])], table({"X": 5}), AmountTable(), roster
    )
    second = run_refresh(
        [vote_tx("Y", 1, ["b", "b"])], table({"Y": 7}), AmountTable(), roster
    )
    assert first.registry is not second.registry
    assert first.result.candidate("A").net_stake == 5
    assert second.result.candidate("A").net_stake == -7
    assert second.registry.addresses() == ["Y"]
    assert second.result.stats.total_registered == 1


def test_eligible_table_limits_total_stake(roster):
    snapshot = run_refresh(
        [],
        table({"X": 5, "Y": 7}),
        AmountTable(),
        roster,
        eligible=table({"Y": 0}, skipped_rows=1),
        expected_total_stake=12,
    )
    assert snapshot.result.stats.total_stake == 7
    assert snapshot.diagnostics.skipped_eligible_rows == 1
    assert not snapshot.diagnostics.total_stake_consistent
