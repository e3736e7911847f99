"""Configuration for the secret-tally service.

Every value has a default suitable for local runs and can be overridden
through an environment variable of the same name prefixed with
``SECRET_TALLY_``.
"""

import os


def _env(name: str, default: str) -> str:
    return os.environ.get(f"SECRET_TALLY_{name}", default)


# Bit length of each Paillier prime; the modulus n is twice as long
KEY_BITS = int(_env("KEY_BITS", "1024"))
MIN_SAFE_KEY_BITS = 1024

# JSON file used by JsonFileStore; empty means keep everything in memory
STORE_PATH = _env("STORE_PATH", "")

# Server configuration
SERVER_HOST = _env("HOST", "127.0.0.1")
SERVER_PORT = int(_env("PORT", "5000"))

# Client configuration
API_URL = _env("API_URL", f"http://{SERVER_HOST}:{SERVER_PORT}")
REQUEST_TIMEOUT = float(_env("REQUEST_TIMEOUT", "10"))

# Logging configuration
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = _env("LOG_LEVEL", "INFO")
