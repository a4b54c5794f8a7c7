"""
Record identifier generation.

new_id() joins the current time in milliseconds with a random base-36
suffix. Two ids generated in the same millisecond collide only if their
suffixes do too, which is adequate for human-triggered writes. Callers that
need a stronger guarantee pass their own id_factory to the services.
"""

import secrets
import string
import time
from collections.abc import Callable

_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9

IdFactory = Callable[[], str]


def new_id() -> str:
    """Return a time-ordered identifier such as ``17291234567890k3x9a2bq1``."""
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{millis}{suffix}"
