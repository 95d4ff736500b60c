import hashlib
import logging
from typing import Any

# Every dynapage module logs here. Records carry table/operation extras; no handler
# is attached beyond NullHandler.
logger = logging.getLogger("dynapage")

logger.addHandler(logging.NullHandler())

DIGEST_LENGTH = 8


def _digest(value: Any) -> str:
    return hashlib.sha256(str(value).encode("utf-8")).hexdigest()[:DIGEST_LENGTH]


def redact_key(key: dict[str, Any] | Any) -> str:
    """
    Build the ``key_hash`` log field for a record key or an all_by hash value.

    A key dict such as ``{"ID": "post-1", "Range": 3}`` becomes
    ``"ID=<digest>,Range=<digest>"`` with attribute names sorted, so the same key
    logs identically from save, get and destroy. A bare value (the hash value of
    an all_by query) becomes its digest alone. Equal keys give equal digests,
    which lets one record's requests be followed through the log without its
    key values ever appearing there.
    """
    if isinstance(key, dict):
        return ",".join(f"{name}={_digest(key[name])}" for name in sorted(key))
    return _digest(key)
