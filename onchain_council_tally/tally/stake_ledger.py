"""
Stake corrections.

Registration and withdrawal tables are loaded once per refresh. The corrected
stake of an address is its registered amount minus its withdrawn amount,
floored at zero. Every other component reads stake through the ledger.
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

_LOGGER = logging.getLogger(__name__)

ADDRESS_COLUMN = "Address"
TRANSACTION_ID_COLUMN = "Transaction ID"
AMOUNT_COLUMN = "Total Committed Amount in Algo"
GENERIC_AMOUNT_COLUMN = "Amount"


@dataclass(frozen=True)
class AmountRow:
    address: str
    amount: int
    transaction_id: str = ""


@dataclass
class AmountTable:
    """
    A parsed correction table.
    Rows that could not be parsed are skipped and counted in skipped_rows.
    """

    rows: List[AmountRow] = field(default_factory=list)
    skipped_rows: int = 0

    @property
    def amounts(self) -> Dict[str, int]:
        # a later row for the same address overrides an earlier one
        return {row.address: row.amount for row in self.rows}

    @property
    def addresses(self) -> List[str]:
        return list(self.amounts.keys())

    @classmethod
    def from_csv(
        cls,
        text: str,
        address_column: str = ADDRESS_COLUMN,
        amount_column: str = AMOUNT_COLUMN,
    ) -> "AmountTable":
        lines = [line for line in text.splitlines() if line.strip()]
        table = cls()
        if not lines:
            return table
        reader = csv.reader(io.StringIO("\n".join(lines)))
        header = [h.strip().lower() for h in next(reader)]
        address_idx = _column_index(header, address_column, 0)
        amount_idx = _column_index(header, amount_column, None)
        if amount_idx is None:
            amount_idx = _column_index(header, GENERIC_AMOUNT_COLUMN, 2)
        tx_idx = _column_index(header, TRANSACTION_ID_COLUMN, None)
        for i, cols in enumerate(reader, start=2):
            cols = [c.strip() for c in cols]
            try:
                address = cols[address_idx]
                amount = int(cols[amount_idx])
            except (IndexError, ValueError):
                _LOGGER.debug(f"Skipping malformed row {i}: {cols}")
                table.skipped_rows += 1
                continue
            if not address:
                table.skipped_rows += 1
                continue
            tx_id = cols[tx_idx] if tx_idx is not None and tx_idx < len(cols) else ""
            table.rows.append(AmountRow(address=address, amount=amount, transaction_id=tx_id))
        if table.skipped_rows:
            _LOGGER.info(f"Skipped {table.skipped_rows} malformed rows")
        return table

    @classmethod
    def from_file(cls, path, **kwargs) -> "AmountTable":
        with open(path, encoding="utf-8") as f:
            return cls.from_csv(f.read(), **kwargs)

    def to_csv(self) -> str:
        out = io.StringIO()
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow([ADDRESS_COLUMN, TRANSACTION_ID_COLUMN, AMOUNT_COLUMN])
        for row in self.rows:
            writer.writerow([row.address, row.transaction_id, row.amount])
        return out.getvalue()


def _column_index(header: List[str], name: str, default: Optional[int]):
    try:
        return header.index(name.lower())
    except ValueError:
        return default


@dataclass(frozen=True)
class StakeRecord:
    address: str
    registered_amount: int
    withdrawn_amount: int

    @property
    def corrected_stake(self) -> int:
        return max(0, self.registered_amount - self.withdrawn_amount)


class StakeLedger:
    def __init__(self):
        self._registered: Dict[str, int] = {}
        self._withdrawn: Dict[str, int] = {}
        self._eligible: Optional[List[str]] = None
        self.loaded = False

    def load(
        self,
        registration: Mapping[str, int],
        withdrawal: Mapping[str, int],
        eligible: Optional[Iterable[str]] = None,
    ):
        """
        Load the correction tables. Loading twice without a reset is a no-op.
        :param registration: registered amount per address
        :param withdrawal: withdrawn amount per address
        :param eligible: addresses of the eligible governors, defaults to all registered addresses
        """
        if self.loaded:
            _LOGGER.debug("Stake ledger already loaded, ignoring")
            return
        self._registered = dict(registration)
        self._withdrawn = dict(withdrawal)
        self._eligible = list(dict.fromkeys(eligible)) if eligible is not None else None
        self.loaded = True
        _LOGGER.info(
            f"Loaded {len(self._registered)} registrations and {len(self._withdrawn)} withdrawals"
        )

    def reset(self):
        self._registered = {}
        self._withdrawn = {}
        self._eligible = None
        self.loaded = False

    def stake_record(self, address: str) -> StakeRecord:
        return StakeRecord(
            address=address,
            registered_amount=self._registered.get(address, 0),
            withdrawn_amount=self._withdrawn.get(address, 0),
        )

    def corrected_stake(self, address: str) -> int:
        return self.stake_record(address).corrected_stake

    def registered_addresses(self) -> List[str]:
        return list(self._registered.keys())

    def eligible_addresses(self) -> List[str]:
        if self._eligible is None:
            return self.registered_addresses()
        return list(self._eligible)

    @property
    def total_registered(self) -> int:
        return len(self._registered)
