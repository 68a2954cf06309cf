"""
HeckeGate Proof Records

A proof record binds a verification decision to the exact input and
computation that produced it.

The content hash is SHA-256 over canonical JSON of:

    {"canonical": [...], "fired": [...], "input": [...], "transaction_id": "..."}

with fired rules sorted by rule id. It is a pure function of transaction
content: the issuance time is stored next to the hash and never mixed into
it, so re-verifying identical input yields the identical hash.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .canonicalization import canonicalize
from .hashing import canonical_hash
from .lifecycle import format_word
from .signing import SigningService, isoformat_z


def sorted_rule_ids(fired_rules: Iterable[Any]) -> List[str]:
    return sorted(getattr(r, "value", r) for r in fired_rules)


def proof_content(
    transaction_id: str,
    input_word: Iterable[int],
    canonical_word: Iterable[int],
    fired_rules: Iterable[Any]
) -> Dict[str, Any]:
    return {
        "transaction_id": transaction_id,
        "input": list(input_word),
        "canonical": list(canonical_word),
        "fired": sorted_rule_ids(fired_rules),
    }


def proof_hash(
    transaction_id: str,
    input_word: Iterable[int],
    canonical_word: Iterable[int],
    fired_rules: Iterable[Any]
) -> str:
    """Content hash of a verification computation."""
    return canonical_hash(proof_content(transaction_id, input_word, canonical_word, fired_rules))


def signing_payload(content_hash: str, issued_at: str) -> bytes:
    """Bytes a proof signature covers: the content hash and its issuance time."""
    return canonicalize({"content_hash": content_hash, "issued_at": issued_at})


@dataclass(frozen=True)
class ProofRecord:
    """Attestation of one verification."""
    transaction_id: str
    input_word: Tuple[int, ...]
    canonical_word: Tuple[int, ...]
    step_count: int
    fired_rules: Tuple[str, ...]
    content_hash: str
    issued_at: str
    signatures: Tuple[Dict[str, Any], ...] = field(default=(), compare=False)

    def to_dict(self) -> Dict[str, Any]:
        """Wire form used in verification responses."""
        return {
            "input": format_word(self.input_word),
            "canonical": format_word(self.canonical_word),
            "steps": self.step_count,
            "violated": list(self.fired_rules),
            "hash": self.content_hash,
            "issuedAt": self.issued_at,
            "signatures": [dict(s) for s in self.signatures],
        }


class ProofRecorder:
    """
    Derives proof records. With a SigningService, each record also carries
    an Ed25519 signature over its content hash and issuance time.
    """

    def __init__(self, signer: Optional[SigningService] = None):
        self.signer = signer

    def attest(
        self,
        transaction_id: str,
        input_word: Iterable[int],
        canonical_word: Iterable[int],
        fired_rules: Iterable[Any],
        step_count: int,
        issued_at: Optional[datetime] = None
    ) -> ProofRecord:
        input_word = tuple(input_word)
        canonical_word = tuple(canonical_word)
        fired = tuple(sorted_rule_ids(fired_rules))
        issued_at = isoformat_z(issued_at or datetime.now(timezone.utc))

        content_hash = proof_hash(transaction_id, input_word, canonical_word, fired)

        signatures = ()
        if self.signer is not None:
            signatures = (self.signer.sign(signing_payload(content_hash, issued_at)),)

        return ProofRecord(
            transaction_id=transaction_id,
            input_word=input_word,
            canonical_word=canonical_word,
            step_count=step_count,
            fired_rules=fired,
            content_hash=content_hash,
            issued_at=issued_at,
            signatures=signatures
        )
