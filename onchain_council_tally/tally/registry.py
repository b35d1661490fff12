import logging
from typing import Dict, List

from .types import VoterId

_LOGGER = logging.getLogger(__name__)


class UnknownVoterId(KeyError):
    """
    Raised when asking for the address of an id that was never allocated
    """


class VoterRegistry:
    """
    Bidirectional mapping between voter addresses and compact integer ids.
    A registry lives for exactly one refresh cycle and only grows.
    """

    def __init__(self):
        self._address_to_id: Dict[str, VoterId] = {}
        self._id_to_address: Dict[VoterId, str] = {}
        self._next_id = 1

    def id_of(self, address: str) -> VoterId:
        voter_id = self._address_to_id.get(address)
        if voter_id is None:
            voter_id = self._next_id
            self._next_id += 1
            self._address_to_id[address] = voter_id
            self._id_to_address[voter_id] = address
        return voter_id

    def address_of(self, voter_id: VoterId) -> str:
        try:
            return self._id_to_address[voter_id]
        except KeyError:
            raise UnknownVoterId(voter_id) from None

    def addresses(self) -> List[str]:
        return list(self._address_to_id.keys())

    def reset(self):
        _LOGGER.debug(f"Clearing voter registry with {len(self)} entries")
        self._address_to_id.clear()
        self._id_to_address.clear()
        self._next_id = 1

    def __len__(self):
        return len(self._address_to_id)

    def __contains__(self, address: str):
        return address in self._address_to_id
