import os
import sys

import pytest


# Ensure repository src directory is on sys.path for tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from secret_tally.service import TallyService  # noqa: E402

# Small primes keep key generation fast; never use this size for real elections
TEST_KEY_BITS = 128


@pytest.fixture
def service():
    return TallyService(key_bits=TEST_KEY_BITS)


@pytest.fixture
def open_election(service):
    """Issue a key for an election and seed its roster size."""

    def _open(election_id="e1", eligible=3):
        return service.create_key(election_id, eligible_count=eligible)

    return _open
