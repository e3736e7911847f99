import json

import pytest

from secret_tally.errors import AlreadyExists
from secret_tally.models import ElectionState, Result, TallyRecord
from secret_tally.roster import StaticRoster
from secret_tally.secrecy import ElectionKey, encrypt_choice
from secret_tally.service import TallyService
from secret_tally.store import ElectionStore, JsonFileStore, MemoryStore

from conftest import TEST_KEY_BITS


@pytest.fixture(params=["memory", "json"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    return JsonFileStore(str(tmp_path / "store" / "elections.json"))


def test_key_insert_is_check_and_set(store):
    key = ElectionKey(election_id="e1", n=15, p=3, q=5)
    store.add_key(key)
    with pytest.raises(AlreadyExists):
        store.add_key(ElectionKey(election_id="e1", n=35, p=5, q=7))
    assert store.get_key("e1") == key
    assert store.get_key("e2") is None


def test_tally_and_result_records(store):
    assert store.get_tally("e1") is None
    record = TallyRecord(election_id="e1", encrypted_sum=12345, ballots_received=2, voters={"a", "b"})
    store.put_tally(record)

    loaded = store.get_tally("e1")
    assert loaded == record
    loaded.voters.add("c")
    assert store.get_tally("e1").voters == {"a", "b"}

    result = Result("e1", yes_count=1, no_count=1, total=2)
    store.put_result(result)
    assert store.get_result("e1") == result


def test_json_store_layout(tmp_path):
    path = tmp_path / "elections.json"
    store = JsonFileStore(str(path))
    store.add_key(ElectionKey(election_id="e1", n=15, p=3, q=5))
    store.put_tally(TallyRecord(election_id="e1", encrypted_sum=7, ballots_received=1, voters={"a"}))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["keys"]["e1"] == {"n": "15", "p": "3", "q": "5"}
    assert data["tallies"]["e1"]["encrypted_sum"] == "7"
    assert data["tallies"]["e1"]["state"] == "open"
    assert not (tmp_path / "elections.json.tmp").exists()


def test_json_store_survives_restart(tmp_path):
    path = str(tmp_path / "elections.json")
    first = TallyService(store=JsonFileStore(path), key_bits=TEST_KEY_BITS)
    pub = first.create_key("e1", eligible_count=2)
    first.submit_ballot("e1", "a", encrypt_choice(pub, True))

    restarted = TallyService(
        store=JsonFileStore(path),
        roster=StaticRoster({"e1": 2}),
        key_bits=TEST_KEY_BITS,
    )
    assert restarted.public_key("e1") == pub
    assert restarted.status("e1").ballots_received == 1
    assert restarted.submit_ballot("e1", "b", encrypt_choice(pub, True)).closed is True
    assert restarted.result("e1") == Result("e1", yes_count=2, no_count=0, total=2)
    assert restarted.status("e1").state is ElectionState.CLOSED


def test_incomplete_store_cannot_be_created():
    class KeysOnly(ElectionStore):
        def add_key(self, key):
            pass

        def get_key(self, election_id):
            return None

    with pytest.raises(TypeError):
        KeysOnly()
