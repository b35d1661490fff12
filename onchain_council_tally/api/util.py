from ..tally.aggregate import MICRO_UNITS


def to_display_units(amount: int) -> float:
    """
    Convert an amount in micro units to display units
    """
    return amount / MICRO_UNITS


def truncate_address(address: str) -> str:
    if len(address) <= 8:
        return address
    return f"{address[:4]}...{address[-4:]}"
