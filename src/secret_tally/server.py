"""Flask API for the secret-tally engine.

Endpoints:
- POST /elections/<id>/key -> issue the election key, optional {"eligible_count": int}
- GET /elections/<id>/public_key -> {"n": "...", "g": "...", "pk_fingerprint": "..."}
- POST /elections/<id>/ballots -> submit {"voter_id": ..., "ciphertext": "...", "pk_fingerprint": ...}
- GET /elections/<id>/status -> lifecycle state and ballot count
- GET /elections/<id>/result -> the result, or 202 {"error": "not_ready"} while open
- POST /elections/<id>/close -> administrative force-close
- GET /health -> liveness probe
"""

import logging
import threading
from typing import Optional

from flask import Flask, jsonify, request

from . import config
from .errors import TallyError
from .service import TallyService, build_service

logger = logging.getLogger(__name__)

app = Flask(__name__)

_SERVICE: Optional[TallyService] = None
_SERVICE_LOCK = threading.Lock()


def get_service() -> TallyService:
    global _SERVICE
    if _SERVICE is None:
        with _SERVICE_LOCK:
            if _SERVICE is None:
                _SERVICE = build_service()
    return _SERVICE


def set_service(service: TallyService) -> None:
    """Swap the engine behind the API (tests, embedding)."""
    global _SERVICE
    _SERVICE = service


@app.errorhandler(TallyError)
def handle_tally_error(exc: TallyError):
    if exc.http_status >= 500:
        logger.error("Request failed: %s", exc)
    return jsonify({"error": exc.code, "detail": str(exc)}), exc.http_status


@app.route("/health", methods=["GET"])
def health_check():
    return jsonify({"status": "healthy"})


@app.route("/elections/<election_id>/key", methods=["POST"])
def create_key(election_id: str):
    """Issue the key for an election.

    Optional JSON {"eligible_count": 3} seeds the roster for this election.
    """
    data = request.get_json(silent=True) or {}
    eligible = data.get("eligible_count")
    if eligible is not None and (isinstance(eligible, bool) or not isinstance(eligible, int) or eligible < 0):
        return jsonify({"error": "invalid eligible_count"}), 400
    pub = get_service().create_key(election_id, eligible_count=eligible)
    return jsonify(pub.to_wire()), 201


@app.route("/elections/<election_id>/public_key", methods=["GET"])
def public_key(election_id: str):
    return jsonify(get_service().public_key(election_id).to_wire())


@app.route("/elections/<election_id>/ballots", methods=["POST"])
def submit_ballot(election_id: str):
    """Submit an encrypted ballot.

    Expects JSON {"voter_id": "...", "ciphertext": "<decimal>"} and
    optionally the "pk_fingerprint" the ballot was encrypted under.
    """
    data = request.get_json(silent=True) or {}
    voter_id = data.get("voter_id")
    ciphertext = data.get("ciphertext")
    fingerprint = data.get("pk_fingerprint")
    if not isinstance(voter_id, str) or not voter_id:
        return jsonify({"error": "missing voter_id"}), 400
    if ciphertext is None:
        return jsonify({"error": "missing ciphertext"}), 400
    if fingerprint is not None and not isinstance(fingerprint, str):
        return jsonify({"error": "invalid pk_fingerprint"}), 400
    receipt = get_service().submit_ballot(election_id, voter_id, ciphertext, fingerprint)
    return jsonify(receipt.to_dict()), 201


@app.route("/elections/<election_id>/status", methods=["GET"])
def election_status(election_id: str):
    return jsonify(get_service().status(election_id).to_dict())


@app.route("/elections/<election_id>/result", methods=["GET"])
def election_result(election_id: str):
    return jsonify(get_service().result(election_id).to_dict())


@app.route("/elections/<election_id>/close", methods=["POST"])
def close_election(election_id: str):
    result = get_service().close(election_id)
    return jsonify(result.to_dict())


def main():
    logging.basicConfig(format=config.LOG_FORMAT, level=config.LOG_LEVEL)
    logger.info("Starting secret-tally server on %s:%d", config.SERVER_HOST, config.SERVER_PORT)
    app.run(host=config.SERVER_HOST, port=config.SERVER_PORT)


if __name__ == "__main__":
    main()
