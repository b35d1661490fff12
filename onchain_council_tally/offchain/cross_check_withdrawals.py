"""
Offline reconciliation of committed stake before and after the withdrawal window.

Every address that is listed in the "before" table but missing from the "after"
table withdrew its commitment. The result is written as a correction table
sorted by committed amount, largest first.
"""
import logging
from typing import List

import fire

from ..tally.stake_ledger import AmountRow, AmountTable

_LOGGER = logging.getLogger(__name__)
_LOGGER.setLevel(logging.INFO)


def find_withdrawals(before: AmountTable, after: AmountTable) -> AmountTable:
    remaining = set(after.addresses)
    seen = set()
    withdrawn: List[AmountRow] = []
    for row in before.rows:
        if row.address in remaining or row.address in seen:
            continue
        seen.add(row.address)
        withdrawn.append(row)
    withdrawn.sort(key=lambda r: (-r.amount, r.address))
    return AmountTable(rows=withdrawn)


def main(
    before: str = "data/commit-amount.csv",
    after: str = "data/final-commit-amount.csv",
    output: str = "data/withdrawn-addresses.csv",
    top: int = 10,
):
    """
    Write the addresses that withdrew between the two snapshots to output.
    """
    before_table = AmountTable.from_file(before)
    after_table = AmountTable.from_file(after)
    withdrawn = find_withdrawals(before_table, after_table)
    with open(output, "w", encoding="utf-8") as f:
        f.write(withdrawn.to_csv())

    total = sum(r.amount for r in withdrawn.rows)
    _LOGGER.info(f"Addresses in {before}: {len(before_table.rows)}")
    _LOGGER.info(f"Addresses in {after}: {len(after_table.rows)}")
    _LOGGER.info(f"Addresses that withdrew: {len(withdrawn.rows)}")
    _LOGGER.info(f"Total amount withdrawn: {total:,}")
    _LOGGER.info(f"Output saved to: {output}")
    for i, row in enumerate(withdrawn.rows[:top]):
        _LOGGER.info(f"{i + 1}. {row.address}: {row.amount:,}")
    return len(withdrawn.rows)


if __name__ == "__main__":
    logging.basicConfig()
    fire.Fire(main)
