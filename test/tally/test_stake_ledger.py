from hypothesis import given
from hypothesis import strategies as st

from onchain_council_tally.tally.stake_ledger import AmountTable, StakeLedger

COMMIT_CSV = """Address,Transaction ID,Total Committed Amount in Algo
ADDR1,TX1,1000000000

 ADDR2 , TX2 , 2500000
ADDR3,TX3,
ADDR4,TX4,lots
,TX5,100
ADDR6
"""


def test_withdrawal_exceeding_registration_floors_at_zero():
    ledger = StakeLedger()
    ledger.load({"addr1": 1000}, {"addr1": 1500})
    assert ledger.corrected_stake("addr1") == 0


def test_corrected_stake():
    ledger = StakeLedger()
    ledger.load({"addr1": 1000, "addr2": 500}, {"addr1": 300, "addr3": 700})
    assert ledger.corrected_stake("addr1") == 700
    assert ledger.corrected_stake("addr2") == 500
    # only withdrawn, never registered
    assert ledger.corrected_stake("addr3") == 0
    assert ledger.corrected_stake("unknown") == 0
    record = ledger.stake_record("addr1")
    assert record.registered_amount == 1000
    assert record.withdrawn_amount == 300


def test_second_load_is_noop_until_reset():
    ledger = StakeLedger()
    ledger.load({"addr1": 1000}, {})
    ledger.load({"addr1": 5}, {"addr1": 5})
    assert ledger.corrected_stake("addr1") == 1000
    ledger.reset()
    assert ledger.corrected_stake("addr1") == 0
    ledger.load({"addr1": 5}, {})
    assert ledger.corrected_stake("addr1") == 5


def test_eligible_defaults_to_registered():
    ledger = StakeLedger()
    ledger.load({"addr1": 1, "addr2": 2}, {})
    assert ledger.eligible_addresses() == ["addr1", "addr2"]
    ledger = StakeLedger()
    ledger.load({"addr1": 1, "addr2": 2}, {}, eligible=["addr2", "addr2"])
    assert ledger.eligible_addresses() == ["addr2"]
    assert ledger.total_registered == 2


def test_parse_amount_table():
    table = AmountTable.from_csv(COMMIT_CSV)
    assert table.amounts == {"ADDR1": 1000000000, "ADDR2": 2500000}
    assert table.rows[1].transaction_id == "TX2"
    assert table.skipped_rows == 4


def test_parse_amount_table_without_known_header():
    table = AmountTable.from_csv("a,b,c\nADDR1,x,10\nADDR2,y,20\n")
    assert table.amounts == {"ADDR1": 10, "ADDR2": 20}


def test_parse_two_column_table():
    table = AmountTable.from_csv("Address,Amount\nADDR1,10\n ADDR2 , 20 \n")
    assert table.amounts == {"ADDR1": 10, "ADDR2": 20}
    assert table.skipped_rows == 0


def test_parse_empty_table():
    table = AmountTable.from_csv("\n\n")
    assert table.rows == []
    assert table.skipped_rows == 0


def test_table_csv_roundtrip():
    table = AmountTable.from_csv(COMMIT_CSV)
    again = AmountTable.from_csv(table.to_csv())
    assert again.rows == table.rows


@given(
    st.dictionaries(st.text(min_size=1), st.integers()),
    st.dictionaries(st.text(min_size=1), st.integers()),
    st.text(min_size=1),
)
def test_corrected_stake_never_negative(registration, withdrawal, address):
    ledger = StakeLedger()
    ledger.load(registration, withdrawal)
    for a in list(registration) + list(withdrawal) + [address]:
        assert ledger.corrected_stake(a) >= 0
