"""
HeckeGate Proof Signing

Optional Ed25519 (RFC 8032) signatures over proof records, so a proof
certificate can be attributed to the gate instance that issued it.

Key files are JSON: {"kid": ..., "private_key_b64": ...}.
Trust stores list public keys with their validity window.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional, Tuple

from nacl.signing import SigningKey, VerifyKey
from nacl.exceptions import BadSignatureError

from .hashing import canonical_hash

ALGORITHM = "Ed25519"


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode('ascii')


def b64d(s: str) -> bytes:
    return base64.b64decode(s.encode('ascii'))


def isoformat_z(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def parse_isoformat_z(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


@dataclass
class KeyPair:
    """Ed25519 key pair."""
    key_id: str
    signing_key: bytes
    verify_key: bytes
    valid_from: datetime
    valid_until: datetime
    algorithm: str = ALGORITHM

    def to_trust_store_entry(self) -> Dict[str, Any]:
        return {
            "key_id": self.key_id,
            "algorithm": self.algorithm,
            "public_key": b64e(self.verify_key),
            "valid_from": isoformat_z(self.valid_from),
            "valid_until": isoformat_z(self.valid_until),
        }


class SigningService:
    """
    Holds the gate's signing keys and signs proof payloads.

    The first key added becomes the active key.
    """

    def __init__(self):
        self._keys: Dict[str, KeyPair] = {}
        self._active_key_id: Optional[str] = None

    @property
    def active_key_id(self) -> Optional[str]:
        return self._active_key_id

    def _add(self, key_pair: KeyPair) -> KeyPair:
        self._keys[key_pair.key_id] = key_pair
        if self._active_key_id is None:
            self._active_key_id = key_pair.key_id
        return key_pair

    def generate_key_pair(self, key_id: str, validity_days: int = 90) -> KeyPair:
        """Generate a new Ed25519 key pair valid from now."""
        signing_key = SigningKey.generate()
        now = datetime.now(timezone.utc)

        return self._add(KeyPair(
            key_id=key_id,
            signing_key=bytes(signing_key),
            verify_key=bytes(signing_key.verify_key),
            valid_from=now,
            valid_until=now + timedelta(days=validity_days)
        ))

    def load_key_file(self, path: str, validity_days: int = 365) -> KeyPair:
        """
        Load a signing key from a JSON key file.

        The file may carry "valid_from" / "valid_until"; otherwise the key is
        valid from load time for validity_days.
        """
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)

        signing_key = SigningKey(b64d(raw["private_key_b64"]))
        now = datetime.now(timezone.utc)
        valid_from = parse_isoformat_z(raw["valid_from"]) if "valid_from" in raw else now
        valid_until = (
            parse_isoformat_z(raw["valid_until"]) if "valid_until" in raw
            else now + timedelta(days=validity_days)
        )

        return self._add(KeyPair(
            key_id=raw["kid"],
            signing_key=bytes(signing_key),
            verify_key=bytes(signing_key.verify_key),
            valid_from=valid_from,
            valid_until=valid_until
        ))

    def save_key_file(self, path: str, key_id: Optional[str] = None):
        key_pair = self._get(key_id)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({
                "kid": key_pair.key_id,
                "private_key_b64": b64e(key_pair.signing_key),
                "valid_from": isoformat_z(key_pair.valid_from),
                "valid_until": isoformat_z(key_pair.valid_until),
            }, f, indent=2)

    def set_active_key(self, key_id: str):
        if key_id not in self._keys:
            raise ValueError(f"Key not found: {key_id}")
        self._active_key_id = key_id

    def _get(self, key_id: Optional[str]) -> KeyPair:
        key_id = key_id or self._active_key_id
        if not key_id:
            raise ValueError("No signing key available")
        key_pair = self._keys.get(key_id)
        if not key_pair:
            raise ValueError(f"Key not found: {key_id}")
        return key_pair

    def sign(self, data: bytes, key_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Sign data with Ed25519.

        Returns:
            Signature dict with key_id, algorithm and base64 signature
        """
        key_pair = self._get(key_id)

        now = datetime.now(timezone.utc)
        if now < key_pair.valid_from or now > key_pair.valid_until:
            raise ValueError(f"Key {key_pair.key_id} is not currently valid")

        signature = SigningKey(key_pair.signing_key).sign(data).signature

        return {
            "key_id": key_pair.key_id,
            "algorithm": ALGORITHM,
            "sig": b64e(signature)
        }

    def get_trust_store(self) -> Dict[str, Any]:
        """Trust store listing the public half of every registered key."""
        store = {
            "keys": [kp.to_trust_store_entry() for kp in self._keys.values()]
        }
        store["trust_store_hash"] = trust_store_hash(store)
        return store


def trust_store_hash(trust_store: Dict[str, Any]) -> str:
    """Hash of a trust store, excluding its own declared hash."""
    body = {k: v for k, v in trust_store.items() if k != "trust_store_hash"}
    return canonical_hash(body)


def verify_signature(
    data: bytes,
    signature: Dict[str, Any],
    trust_store: Dict[str, Any],
    signed_at: Optional[datetime] = None
) -> Tuple[bool, Optional[str]]:
    """
    Verify one signature dict against a trust store.

    Returns:
        (valid, reason) where reason explains a failure
    """
    key_id = signature.get("key_id")
    algorithm = signature.get("algorithm")
    sig = signature.get("sig")

    if not all([key_id, algorithm, sig]):
        return False, "Incomplete signature data"

    entry = next((k for k in trust_store.get("keys", []) if k.get("key_id") == key_id), None)
    if entry is None:
        return False, f"Key not found in trust store: {key_id}"

    if entry.get("algorithm") != algorithm:
        return False, f"Algorithm mismatch: key {entry.get('algorithm')}, signature {algorithm}"

    if signed_at is not None:
        valid_from = parse_isoformat_z(entry["valid_from"])
        valid_until = parse_isoformat_z(entry["valid_until"])
        if signed_at < valid_from or signed_at > valid_until:
            return False, f"Key {key_id} was not valid at signing time"

    try:
        VerifyKey(b64d(entry["public_key"])).verify(data, b64d(sig))
    except BadSignatureError:
        return False, "Bad signature"
    except (binascii.Error, AttributeError, ValueError, TypeError) as e:
        return False, f"Malformed key or signature: {e}"

    return True, None
