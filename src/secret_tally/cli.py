"""Small CLI for interacting with the secret-tally server.

Usage examples:
    secret-tally create-key 42 --eligible 3
    secret-tally vote 42 --voter alice --yes
    secret-tally status 42
    secret-tally result 42

``vote`` fetches the election's public key and encrypts the choice locally;
only the ciphertext leaves the machine.
"""

from __future__ import annotations

import argparse
import json

import requests

from . import config
from .secrecy import PublicKey, encrypt_choice


def _request(method: str, base: str, path: str, **kwargs) -> requests.Response:
    return requests.request(method, f"{base}{path}", timeout=config.REQUEST_TIMEOUT, **kwargs)


def _show(r: requests.Response):
    try:
        body = json.dumps(r.json(), indent=2)
    except ValueError:
        body = r.text
    print(r.status_code, body)


def create_key(base: str, election_id: str, eligible: int | None = None):
    body = {} if eligible is None else {"eligible_count": eligible}
    _show(_request("POST", base, f"/elections/{election_id}/key", json=body))


def public_key(base: str, election_id: str):
    _show(_request("GET", base, f"/elections/{election_id}/public_key"))


def vote(base: str, election_id: str, voter_id: str, yes: bool):
    r = _request("GET", base, f"/elections/{election_id}/public_key")
    r.raise_for_status()
    pub = PublicKey.from_wire(election_id, r.json())
    body = {
        "voter_id": voter_id,
        "ciphertext": encrypt_choice(pub, yes),
        "pk_fingerprint": pub.fingerprint,
    }
    _show(_request("POST", base, f"/elections/{election_id}/ballots", json=body))


def status(base: str, election_id: str):
    _show(_request("GET", base, f"/elections/{election_id}/status"))


def result(base: str, election_id: str):
    _show(_request("GET", base, f"/elections/{election_id}/result"))


def close(base: str, election_id: str):
    _show(_request("POST", base, f"/elections/{election_id}/close"))


def main(argv=None):
    p = argparse.ArgumentParser(prog="secret-tally")
    p.add_argument("--url", default=config.API_URL, help="server base URL")
    sub = p.add_subparsers(dest="cmd")
    c = sub.add_parser("create-key")
    c.add_argument("election_id")
    c.add_argument("--eligible", type=int)
    for name in ("public-key", "status", "result", "close"):
        sub.add_parser(name).add_argument("election_id")
    v = sub.add_parser("vote")
    v.add_argument("election_id")
    v.add_argument("--voter", required=True)
    choice = v.add_mutually_exclusive_group(required=True)
    choice.add_argument("--yes", dest="yes", action="store_true")
    choice.add_argument("--no", dest="yes", action="store_false")
    args = p.parse_args(argv)

    base = args.url.rstrip("/")
    if args.cmd == "create-key":
        create_key(base, args.election_id, args.eligible)
    elif args.cmd == "public-key":
        public_key(base, args.election_id)
    elif args.cmd == "vote":
        vote(base, args.election_id, args.voter, args.yes)
    elif args.cmd == "status":
        status(base, args.election_id)
    elif args.cmd == "result":
        result(base, args.election_id)
    elif args.cmd == "close":
        close(base, args.election_id)
    else:
        p.print_help()


if __name__ == "__main__":
    main()
