"""
The main file containing the logic for starting the querier.
The querier periodically pulls the voting history and the correction tables,
checks that they reconstruct cleanly and replaces the stored inputs in one go.
"""
import datetime
import logging
import os
import time
from dataclasses import dataclass
from typing import List, Optional, Tuple

import fire

from ..tally.pipeline import TallySnapshot, run_refresh
from ..tally.stake_ledger import AmountTable
from ..tally.types import IndexerTransaction
from . import config
from .db_models import (
    ELIGIBLE,
    REGISTRATION,
    WITHDRAWAL,
    IndexedTransaction,
    Refresh,
    StakeTableDiagnostics,
    StakeTableRow,
    create_tables,
)
from .indexer import IndexerClient
from .rate_limit import SlidingWindowRateLimiter

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


@dataclass
class RefreshInputs:
    transactions: List[IndexerTransaction]
    registration: AmountTable
    withdrawal: AmountTable
    eligible: Optional[AmountTable]
    window: Optional[Tuple[int, int]]


def read_table(path: str, required: bool) -> Optional[AmountTable]:
    if not path or not os.path.exists(path):
        if required:
            raise FileNotFoundError(f"Correction table {path} not found")
        _LOGGER.warning(f"Correction table {path} not found, skipping")
        return None
    return AmountTable.from_file(path)


def default_client() -> IndexerClient:
    return IndexerClient(
        config.indexer_url,
        SlidingWindowRateLimiter(
            config.indexer_max_requests, config.indexer_window_seconds
        ),
    )


def fetch_inputs(client: IndexerClient) -> RefreshInputs:
    """
    Fetch everything a refresh needs. Nothing is written while fetching.
    """
    registration = read_table(config.registration_csv, required=True)
    withdrawal = read_table(config.withdrawal_csv, required=False) or AmountTable()
    eligible = read_table(config.eligible_csv, required=False)
    transactions = client.fetch_account_transactions(
        config.voting_account, config.voting_start_round, config.indexer_page_limit
    )
    window = None
    if config.governance_period_url:
        window = client.fetch_voting_period(config.governance_period_url)
    return RefreshInputs(
        transactions=transactions,
        registration=registration,
        withdrawal=withdrawal,
        eligible=eligible,
        window=window,
    )


def snapshot_from_inputs(inputs: RefreshInputs) -> TallySnapshot:
    return run_refresh(
        inputs.transactions,
        inputs.registration,
        inputs.withdrawal,
        config.roster,
        eligible=inputs.eligible,
        window=inputs.window,
        target_buckets=config.timeseries_buckets,
        min_bucket_millis=config.timeseries_min_bucket_millis,
        expected_total_stake=config.expected_total_stake,
        expected_total_tolerance=config.expected_total_tolerance,
    )


def store_inputs(inputs: RefreshInputs, started_at: datetime.datetime) -> Refresh:
    """
    Replace all stored inputs inside a single database transaction.
    """
    database = IndexedTransaction._meta.database
    with database.atomic():
        IndexedTransaction.delete().execute()
        StakeTableRow.delete().execute()
        StakeTableDiagnostics.delete().execute()
        unique_txs = {tx.id: tx for tx in inputs.transactions}
        for tx in unique_txs.values():
            IndexedTransaction.create(
                transaction_id=tx.id,
                sender=tx.sender,
                note=tx.note,
                round_time=tx.submitted_at_seconds,
                confirmed_round=tx.confirmed_round,
                intra_round_offset=tx.intra_round_offset,
            )
        for kind, table in (
            (REGISTRATION, inputs.registration),
            (WITHDRAWAL, inputs.withdrawal),
            (ELIGIBLE, inputs.eligible),
        ):
            if table is None:
                continue
            for i, row in enumerate(table.rows):
                StakeTableRow.create(
                    kind=kind,
                    address=row.address,
                    amount=row.amount,
                    transaction_id=row.transaction_id,
                    position=i,
                )
            StakeTableDiagnostics.create(kind=kind, skipped_rows=table.skipped_rows)
        return Refresh.create(
            started_at=started_at,
            finished_at=datetime.datetime.now(),
            transaction_count=len(unique_txs),
            window_start=inputs.window[0] if inputs.window else None,
            window_end=inputs.window[1] if inputs.window else None,
        )


def refresh(client: Optional[IndexerClient] = None) -> Refresh:
    """
    Run one refresh cycle. Any error leaves the previously stored state untouched.
    """
    started_at = datetime.datetime.now()
    inputs = fetch_inputs(client or default_client())
    snapshot = snapshot_from_inputs(inputs)
    _LOGGER.info(f"Refresh diagnostics: {snapshot.diagnostics}")
    return store_inputs(inputs, started_at)


def main(once: bool = False, interval: int = None, debug_sql: bool = False):
    """
    Start the querier.
    """
    if debug_sql:
        logger = logging.getLogger("peewee")
        logger.addHandler(logging.StreamHandler())
        logger.setLevel(logging.DEBUG)

    interval = interval or config.refresh_interval_seconds
    _LOGGER.info("Starting the querier")
    create_tables()
    client = default_client()
    while True:
        try:
            db_refresh = refresh(client)
            _LOGGER.info(
                f"Refresh {db_refresh.id} stored {db_refresh.transaction_count} transactions"
            )
        except Exception as e:
            if once:
                raise
            _LOGGER.error(f"Refresh failed, keeping previous state: {e}")
        if once:
            return
        time.sleep(interval)


if __name__ == "__main__":
    fire.Fire(main)
