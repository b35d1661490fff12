import pytest
from hypothesis import given
from hypothesis import strategies as st

from onchain_council_tally.tally.registry import UnknownVoterId, VoterRegistry


def test_distinct_addresses_get_distinct_ids():
    registry = VoterRegistry()
    id_1 = registry.id_of("ADDR1")
    id_2 = registry.id_of("ADDR2")
    assert id_1 != id_2
    assert id_1 > 0 and id_2 > 0
    assert registry.id_of("ADDR1") == id_1
    assert registry.address_of(id_1) == "ADDR1"
    assert registry.address_of(id_2) == "ADDR2"
    assert len(registry) == 2


def test_unknown_id_raises():
    registry = VoterRegistry()
    registry.id_of("ADDR1")
    with pytest.raises(UnknownVoterId):
        registry.address_of(42)
    # still a KeyError for callers that only know about mappings
    with pytest.raises(KeyError):
        registry.address_of(0)


def test_reset_clears_all_ids():
    registry = VoterRegistry()
    voter_id = registry.id_of("ADDR1")
    registry.reset()
    assert len(registry) == 0
    assert "ADDR1" not in registry
    with pytest.raises(UnknownVoterId):
        registry.address_of(voter_id)
    assert registry.id_of("ADDR2") == 1


@given(st.lists(st.text(min_size=1)))
def test_registry_is_bijective(addresses):
    registry = VoterRegistry()
    ids = {a: registry.id_of(a) for a in addresses}
    assert len(set(ids.values())) == len(set(addresses))
    for address, voter_id in ids.items():
        assert registry.address_of(voter_id) == address
    assert sorted(registry.addresses()) == sorted(set(addresses))
