"""Deterministic track identifiers."""
import hashlib
import json
import re
import secrets
from typing import Sequence, Union

TRACK_ID_LENGTH = 10

_TRACK_ID_PATTERN = re.compile(r"^[0-9a-f]{6,32}$")


def canonical_descriptor(descriptor: Sequence[int]) -> str:
    """Compact JSON form of a normalized descriptor, e.g. ``[12,-3,40]``."""
    return json.dumps([int(v) for v in descriptor], separators=(",", ":"))


def derive_track_id(value: Union[Sequence[int], str], length: int = TRACK_ID_LENGTH) -> str:
    """Derive a short hex track id from a normalized descriptor or a seed string.

    Only normalized integer descriptors may be passed here; hashing raw floats
    would give the same face a different id.

    Args:
        value: Normalized descriptor or seed string
        length: Number of hex characters to keep

    Returns:
        Lowercase hex string of ``length`` characters
    """
    payload = value if isinstance(value, str) else canonical_descriptor(value)
    return hashlib.md5(payload.encode("utf-8")).hexdigest()[:length]


def random_track_id(length: int = TRACK_ID_LENGTH) -> str:
    """Random hex track id for identities owned by a cloud recognizer."""
    return secrets.token_hex((length + 1) // 2)[:length]


def is_track_id(value: str) -> bool:
    """Whether a string has the shape of a track id."""
    return bool(value) and bool(_TRACK_ID_PATTERN.match(value))
