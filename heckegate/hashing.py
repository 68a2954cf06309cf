"""
HeckeGate Hashing

All digests are SHA-256 with lowercase hexadecimal output and a
"sha256:" prefix.
"""

import hashlib
from typing import Any, Union

from .canonicalization import canonicalize


def sha256_hash(data: Union[bytes, str]) -> str:
    """
    Compute SHA-256 hash.

    Returns:
        Hash string in format "sha256:abcdef..."
    """
    if isinstance(data, str):
        data = data.encode('utf-8')

    digest = hashlib.sha256(data).hexdigest().lower()
    return f"sha256:{digest}"


def canonical_hash(obj: Any) -> str:
    """SHA-256 of the canonical JSON encoding of obj."""
    return sha256_hash(canonicalize(obj))

