import threading
import time

import pytest

# If Flask isn't installed in the environment, skip these integration tests.
pytest.importorskip("flask")

from secret_tally import server
from secret_tally.secrecy import PublicKey, encrypt_choice, encrypt_plaintext


@pytest.fixture
def client(service):
    server.set_service(service)
    yield server.app.test_client()
    server.set_service(None)


def _public_key(client, election_id):
    rv = client.get(f"/elections/{election_id}/public_key")
    assert rv.status_code == 200
    return PublicKey.from_wire(election_id, rv.get_json())


def test_full_flow_key_vote_close_result(client):
    rv = client.post("/elections/42/key", json={"eligible_count": 3})
    assert rv.status_code == 201
    wire = rv.get_json()
    assert int(wire["g"]) == int(wire["n"]) + 1
    assert len(wire["pk_fingerprint"]) == 64

    # second issuance is refused and the key is unchanged
    rv = client.post("/elections/42/key", json={"eligible_count": 3})
    assert rv.status_code == 409
    assert rv.get_json()["error"] == "already_exists"
    pub = _public_key(client, "42")
    assert pub.to_wire() == wire

    rv = client.get("/elections/42/result")
    assert rv.status_code == 202
    assert rv.get_json()["error"] == "not_ready"

    for voter, choice in [("alice", True), ("bob", False), ("carol", True)]:
        rv = client.post(
            "/elections/42/ballots",
            json={
                "voter_id": voter,
                "ciphertext": encrypt_choice(pub, choice),
                "pk_fingerprint": pub.fingerprint,
            },
        )
        assert rv.status_code == 201
    assert rv.get_json()["closed"] is True
    assert rv.get_json()["ballots_received"] == 3

    rv = client.get("/elections/42/status")
    assert rv.get_json() == {
        "election_id": "42",
        "state": "closed",
        "ballots_received": 3,
        "finalization_failed": False,
    }

    expected = {"election_id": "42", "yes_count": 2, "no_count": 1, "total": 3}
    for _ in range(2):
        rv = client.get("/elections/42/result")
        assert rv.status_code == 200
        assert rv.get_json() == expected

    rv = client.post("/elections/42/ballots", json={"voter_id": "dave", "ciphertext": encrypt_choice(pub, True)})
    assert rv.status_code == 409
    assert rv.get_json()["error"] == "election_closed"


def test_ballot_rejections(client):
    client.post("/elections/7/key", json={"eligible_count": 2})
    pub = _public_key(client, "7")

    rv = client.post("/elections/7/ballots", json={"ciphertext": encrypt_choice(pub, True)})
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "missing voter_id"

    rv = client.post("/elections/7/ballots", json={"voter_id": "v1"})
    assert rv.status_code == 400

    rv = client.post("/elections/7/ballots", json={"voter_id": "v1", "ciphertext": "not-a-number"})
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "invalid_ciphertext"

    rv = client.post("/elections/7/ballots", json={"voter_id": "v1", "ciphertext": str(pub.nsquare)})
    assert rv.status_code == 400

    rv = client.post("/elections/7/ballots", json={"voter_id": "v1", "ciphertext": encrypt_choice(pub, True)})
    assert rv.status_code == 201
    rv = client.post("/elections/7/ballots", json={"voter_id": "v1", "ciphertext": encrypt_choice(pub, False)})
    assert rv.status_code == 403
    assert rv.get_json()["error"] == "duplicate_vote"

    assert client.get("/elections/7/status").get_json()["ballots_received"] == 1


def test_unknown_election_and_bad_key_request(client):
    assert client.get("/elections/nope/public_key").status_code == 404
    assert client.get("/elections/nope/status").status_code == 404
    rv = client.post("/elections/nope/ballots", json={"voter_id": "v", "ciphertext": "5"})
    assert rv.status_code == 404
    assert rv.get_json()["error"] == "not_found"

    rv = client.post("/elections/x/key", json={"eligible_count": -1})
    assert rv.status_code == 400
    assert client.get("/elections/x/public_key").status_code == 404


def test_force_close_endpoint(client):
    client.post("/elections/9/key", json={"eligible_count": 10})
    pub = _public_key(client, "9")
    client.post("/elections/9/ballots", json={"voter_id": "v1", "ciphertext": encrypt_choice(pub, True)})

    rv = client.post("/elections/9/close")
    assert rv.status_code == 200
    assert rv.get_json() == {"election_id": "9", "yes_count": 1, "no_count": 0, "total": 1}
    assert client.post("/elections/9/close").status_code == 409


def test_decryption_failure_is_surfaced(client):
    client.post("/elections/bad/key", json={"eligible_count": 1})
    pub = _public_key(client, "bad")
    rv = client.post("/elections/bad/ballots", json={"voter_id": "v1", "ciphertext": str(encrypt_plaintext(pub, 5))})
    assert rv.status_code == 500
    assert rv.get_json()["error"] == "decryption_error"

    assert client.get("/elections/bad/status").get_json()["finalization_failed"] is True
    assert client.get("/elections/bad/result").status_code == 500


def test_health(client):
    assert client.get("/health").get_json() == {"status": "healthy"}


def test_concurrent_first_requests_share_one_service(service, monkeypatch):
    built = []

    def slow_build():
        time.sleep(0.05)
        built.append(service)
        return service

    monkeypatch.setattr(server, "build_service", slow_build)
    server.set_service(None)
    barrier = threading.Barrier(4)
    seen = []

    def first_request():
        barrier.wait()
        seen.append(server.get_service())

    threads = [threading.Thread(target=first_request) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    server.set_service(None)

    assert len(built) == 1
    assert len(seen) == 4
    assert all(s is service for s in seen)


def test_oversized_ciphertext_is_a_client_error(client):
    client.post("/elections/big/key", json={"eligible_count": 2})
    rv = client.post("/elections/big/ballots", json={"voter_id": "v1", "ciphertext": "9" * 5000})
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "invalid_ciphertext"
