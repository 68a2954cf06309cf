"""
HeckeGate Audit Replay

Lets an auditor confirm a verification result after the fact. Given the
original transaction and the serialized result, the verifier recomputes the
whole computation with its own catalog and checks that every bound value
matches:

1. Catalog hash
2. Proof content hash (recomputed from transaction content)
3. Input word
4. Canonical word, step count and fired rules
5. Verdict and finding code
6. Signatures, when a trust store is supplied
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .engine import VerificationEngine, Verdict
from .lifecycle import Transaction, format_word
from .proof import proof_hash, signing_payload
from .signing import parse_isoformat_z, verify_signature

logger = logging.getLogger(__name__)


class ReplayOutcome(str, Enum):
    VALID_APPROVED = "VALID_APPROVED"
    VALID_BLOCKED = "VALID_BLOCKED"
    INVALID = "INVALID"


@dataclass
class ReplayResult:
    """Result of replaying a verification result."""
    outcome: ReplayOutcome
    reason: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def is_valid(self) -> bool:
        return self.outcome in (ReplayOutcome.VALID_APPROVED, ReplayOutcome.VALID_BLOCKED)

    @classmethod
    def invalid(cls, reason: str, details: Dict[str, Any] = None) -> "ReplayResult":
        return cls(outcome=ReplayOutcome.INVALID, reason=reason, details=details)

    def to_dict(self) -> Dict[str, Any]:
        d = {"outcome": self.outcome.value}
        if self.reason:
            d["reason"] = self.reason
        if self.details:
            d["details"] = self.details
        return d


def _mismatch(field_name: str, computed: Any, declared: Any) -> ReplayResult:
    logger.warning("Replay mismatch on %s: computed %r, declared %r", field_name, computed, declared)
    return ReplayResult.invalid(
        f"{field_name} mismatch",
        {"computed": computed, "declared": declared}
    )


class ProofVerifier:
    """Replays verification results against an independent VerificationEngine."""

    def __init__(self, engine: VerificationEngine, trust_store: Optional[Dict[str, Any]] = None):
        self.engine = engine
        self.trust_store = trust_store

    def verify(self, transaction: Transaction, result: Dict[str, Any]) -> ReplayResult:
        """
        Replay a serialized VerificationResult (the to_dict() form).

        Signatures are checked only when a trust store was supplied; a
        result without signatures is then rejected.
        """
        if not isinstance(result, dict):
            return ReplayResult.invalid("Malformed result", {"field": "result"})

        proof = result.get("proof") or {}
        finding = result.get("finding") or {}
        for name, value in (("proof", proof), ("finding", finding)):
            if not isinstance(value, dict):
                return ReplayResult.invalid("Malformed result", {"field": name})

        if result.get("transactionId") != transaction.id:
            return _mismatch("Transaction id", transaction.id, result.get("transactionId"))

        catalog_hash = self.engine.catalog.get_hash()
        if result.get("catalogHash") != catalog_hash:
            return _mismatch("Catalog hash", catalog_hash, result.get("catalogHash"))

        replayed = self.engine.verify(transaction)
        reduction = replayed.reduction

        computed_hash = proof_hash(
            transaction.id, transaction.lifecycle_word, reduction.canonical, reduction.fired_rules
        )
        if proof.get("hash") != computed_hash:
            return _mismatch("Proof hash", computed_hash, proof.get("hash"))

        checks = (
            ("Input word", format_word(transaction.lifecycle_word), proof.get("input")),
            ("Canonical word", format_word(reduction.canonical), proof.get("canonical")),
            ("Step count", reduction.step_count, proof.get("steps")),
            ("Fired rules", reduction.sorted_rules(), proof.get("violated")),
            ("Verdict", replayed.verdict.value, result.get("verdict")),
            (
                "Finding code",
                replayed.finding.code if replayed.finding else None,
                finding.get("code")
            ),
        )
        for name, computed, declared in checks:
            if computed != declared:
                return _mismatch(name, computed, declared)

        if self.trust_store is not None:
            failure = self._verify_signatures(proof)
            if failure is not None:
                return failure

        if replayed.verdict == Verdict.APPROVED:
            return ReplayResult(outcome=ReplayOutcome.VALID_APPROVED)
        return ReplayResult(outcome=ReplayOutcome.VALID_BLOCKED)

    def _verify_signatures(self, proof: Dict[str, Any]) -> Optional[ReplayResult]:
        signatures = proof.get("signatures") or []
        if not signatures:
            return ReplayResult.invalid("No signatures present")
        if not isinstance(signatures, list) or not all(isinstance(s, dict) for s in signatures):
            return ReplayResult.invalid("Malformed result", {"field": "proof.signatures"})

        issued_at = proof.get("issuedAt")
        if not issued_at:
            return ReplayResult.invalid("Missing issuedAt")
        if not isinstance(issued_at, str):
            return ReplayResult.invalid("Malformed result", {"field": "proof.issuedAt"})

        try:
            signed_at = parse_isoformat_z(issued_at)
        except ValueError as e:
            return ReplayResult.invalid(f"Invalid issuedAt format: {e}")
        if signed_at.tzinfo is None:
            return ReplayResult.invalid("issuedAt has no UTC offset")

        payload = signing_payload(proof["hash"], issued_at)
        for signature in signatures:
            valid, reason = verify_signature(payload, signature, self.trust_store, signed_at)
            if not valid:
                return ReplayResult.invalid(reason, {"key_id": signature.get("key_id")})

        return None


def replay_result(
    engine: VerificationEngine,
    transaction: Transaction,
    result: Dict[str, Any],
    trust_store: Optional[Dict[str, Any]] = None
) -> ReplayResult:
    """Convenience function to replay one result."""
    return ProofVerifier(engine, trust_store).verify(transaction, result)
