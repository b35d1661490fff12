import logging

from onchain_council_tally.offchain.cross_check_withdrawals import (
    find_withdrawals,
    main,
)
from onchain_council_tally.tally.stake_ledger import AmountRow, AmountTable

BEFORE_CSV = """Address,Transaction ID,Total Committed Amount in Algo
A1,T1,100
A2,T2,300
A3,T3,300
A4,T4,50
A2,T5,300
"""

AFTER_CSV = """Address,Transaction ID,Total Committed Amount in Algo
A1,T1,100
"""


def test_find_withdrawals():
    withdrawn = find_withdrawals(
        AmountTable.from_csv(BEFORE_CSV), AmountTable.from_csv(AFTER_CSV)
    )
    assert withdrawn.rows == [
        AmountRow("A2", 300, "T2"),
        AmountRow("A3", 300, "T3"),
        AmountRow("A4", 50, "T4"),
    ]


def test_nothing_withdrawn():
    table = AmountTable.from_csv(BEFORE_CSV)
    assert find_withdrawals(table, table).rows == []


def test_main_writes_correction_table(tmp_path, caplog):
    before = tmp_path / "before.csv"
    before.write_text(BEFORE_CSV)
    after = tmp_path / "after.csv"
    after.write_text(AFTER_CSV)
    output = tmp_path / "withdrawn.csv"
    with caplog.at_level(logging.INFO):
        count = main(str(before), str(after), str(output), top=1)
    assert count == 3
    assert "Total amount withdrawn: 650" in caplog.text
    assert "1. A2: 300" in caplog.text
    assert "2. A3" not in caplog.text

    written = AmountTable.from_file(output)
    assert written.amounts == {"A2": 300, "A3": 300, "A4": 50}
    assert output.read_text().splitlines()[0] == (
        "Address,Transaction ID,Total Committed Amount in Algo"
    )
