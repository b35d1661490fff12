import pytest
from peewee import SqliteDatabase

from onchain_council_tally.api.db_models import MODELS
from onchain_council_tally.api.db_queries.tally import clear_snapshot_cache
from onchain_council_tally.tally.note import encode_note
from onchain_council_tally.tally.stake_ledger import StakeLedger
from onchain_council_tally.tally.types import Candidate, IndexerTransaction

ROSTER_AB = [
    Candidate(name="A", address="ADDR_A"),
    Candidate(name="B", address="ADDR_B"),
]


@pytest.fixture
def roster():
    return list(ROSTER_AB)


@pytest.fixture
def vote_tx():
    """
    Factory for a transaction carrying a voting note
    """
    counter = {"n": 0}

    def make(sender, seconds, codes, tx_id=None, **kwargs):
        counter["n"] += 1
        return IndexerTransaction(
            id=tx_id or f"TX{counter['n']:04d}",
            sender=sender,
            submitted_at_seconds=seconds,
            note=encode_note([1, *codes]),
            **kwargs,
        )

    return make


@pytest.fixture
def ledger():
    def make(registration, withdrawal=None, eligible=None):
        ledger = StakeLedger()
        ledger.load(registration, withdrawal or {}, eligible)
        return ledger

    return make


@pytest.fixture
def test_db(tmp_path):
    database = SqliteDatabase(str(tmp_path / "test.db"))
    with database.bind_ctx(MODELS):
        database.create_tables(MODELS)
        clear_snapshot_cache()
        yield database
    clear_snapshot_cache()
    database.close()
