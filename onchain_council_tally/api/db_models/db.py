from peewee import *

from ..config import database_path

sqlite_db = SqliteDatabase(
    database_path,
    pragmas={
        "journal_mode": "wal",
        "foreign_keys": 1,
        "ignore_check_constraints": 0,
    },
)


class BaseModel(Model):
    class Meta:
        database = sqlite_db


AddressField = lambda **kwargs: CharField(max_length=128, **kwargs)

REGISTRATION = "registration"
WITHDRAWAL = "withdrawal"
ELIGIBLE = "eligible"
STAKE_TABLE_KINDS = (REGISTRATION, WITHDRAWAL, ELIGIBLE)


class Refresh(BaseModel):
    """
    One successfully completed refresh cycle
    """

    started_at = DateTimeField()
    finished_at = DateTimeField()
    transaction_count = IntegerField()
    window_start = BigIntegerField(null=True)
    window_end = BigIntegerField(null=True)


class IndexedTransaction(BaseModel):
    """
    A transaction of the voting account as returned by the indexer
    """

    transaction_id = CharField(max_length=64, unique=True, index=True)
    sender = AddressField(index=True)
    note = TextField(null=True)
    round_time = BigIntegerField(index=True)
    confirmed_round = BigIntegerField(default=0)
    intra_round_offset = IntegerField(default=0)


class StakeTableRow(BaseModel):
    """
    A row of one of the correction tables, amounts in micro units
    """

    kind = CharField(max_length=16, index=True)
    address = AddressField()
    amount = BigIntegerField()
    transaction_id = CharField(max_length=64, default="")
    position = IntegerField()


class StakeTableDiagnostics(BaseModel):
    kind = CharField(max_length=16, unique=True)
    skipped_rows = IntegerField(default=0)


MODELS = [Refresh, IndexedTransaction, StakeTableRow, StakeTableDiagnostics]


def create_tables():
    sqlite_db.create_tables(MODELS)
