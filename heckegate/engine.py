"""
HeckeGate Verification Engine

Decides, for one transaction, between two outcomes:

    APPROVED  the lifecycle word is exactly the class baseline
    BLOCKED   anything else, always with a concrete finding

There is no third state. An anomaly that matches no signature is reported
with the first signature of the class registry (fail closed), never as
approved and never unclassified.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .catalog import Signature, SignatureCatalog
from .lifecycle import Transaction, TransactionClass, format_word, validate_word
from .proof import ProofRecord, ProofRecorder
from .rewriting import ReductionResult, RewriteEngine

logger = logging.getLogger(__name__)

ENGINE_NAME = "HeckeGate"


class Verdict(str, Enum):
    APPROVED = "APPROVED"
    BLOCKED = "BLOCKED"


class MatchKind(str, Enum):
    """How a finding was selected."""
    CANONICAL = "CANONICAL"
    RULES = "RULES"
    FALLBACK = "FALLBACK"


@dataclass(frozen=True)
class Finding:
    """A signature projected into a verification result."""
    code: str
    name: str
    severity: str
    regulation: str
    risk: str
    control: str
    material_weakness: bool
    match: MatchKind

    @classmethod
    def from_signature(cls, signature: Signature, match: MatchKind) -> "Finding":
        return cls(
            code=signature.code,
            name=signature.name,
            severity=signature.severity.value,
            regulation=signature.regulation,
            risk=signature.risk,
            control=signature.control,
            material_weakness=signature.material_weakness,
            match=match
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "severity": self.severity,
            "regulation": self.regulation,
            "risk": self.risk,
            "control": self.control,
            "materialWeakness": self.material_weakness,
            "match": self.match.value,
        }


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one transaction."""
    transaction_id: str
    verdict: Verdict
    finding: Optional[Finding]
    proof: ProofRecord
    latency_micros: int
    catalog_hash: str
    reduction: ReductionResult

    def blocked(self) -> bool:
        return self.verdict == Verdict.BLOCKED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transactionId": self.transaction_id,
            "verdict": self.verdict.value,
            "finding": self.finding.to_dict() if self.finding else None,
            "proof": self.proof.to_dict(),
            "latencyMicros": self.latency_micros,
            "catalogHash": self.catalog_hash,
            "engine": ENGINE_NAME,
        }


@dataclass(frozen=True)
class _Fingerprint:
    signature: Signature
    reduction: ReductionResult


class VerificationEngine:
    """
    Classifies transactions against an injected, immutable SignatureCatalog.

    Baseline and signature fingerprints are reduced once at construction;
    verify() itself holds no state and may be called from any thread.
    """

    def __init__(
        self,
        catalog: SignatureCatalog,
        engine: Optional[RewriteEngine] = None,
        recorder: Optional[ProofRecorder] = None
    ):
        self.catalog = catalog
        self.engine = engine or RewriteEngine()
        self.recorder = recorder or ProofRecorder()

        self._baselines: Dict[TransactionClass, ReductionResult] = {}
        self._fingerprints: Dict[TransactionClass, Tuple[_Fingerprint, ...]] = {}

        for tx_class in catalog.classes():
            self._baselines[tx_class] = self.engine.reduce(catalog.baseline(tx_class))
            self._fingerprints[tx_class] = tuple(
                _Fingerprint(signature=s, reduction=self.engine.reduce(s.word))
                for s in catalog.signatures(tx_class)
            )

    def fingerprints(self, transaction_class) -> List[Tuple[Signature, ReductionResult]]:
        """(signature, reduction) pairs for a class, in registry order."""
        tx_class = self.catalog.registry(transaction_class).transaction_class
        return [(f.signature, f.reduction) for f in self._fingerprints[tx_class]]

    def verify(self, transaction: Transaction) -> VerificationResult:
        """
        Verify one transaction.

        Raises:
            InvalidWord: the lifecycle word is outside the catalog's alphabet
                or length bound
            UnknownTransactionClass: the catalog has no registry for the class
        """
        started = time.perf_counter()

        registry = self.catalog.registry(transaction.transaction_class)
        tx_class = registry.transaction_class
        word = validate_word(
            transaction.lifecycle_word,
            self.catalog.max_generator,
            self.catalog.max_word_length
        )

        reduction = self.engine.reduce(word)
        baseline = self._baselines[tx_class]

        logger.debug(
            "Reduced %s %s -> %s in %d steps, fired %s",
            transaction.id, format_word(word), format_word(reduction.canonical),
            reduction.step_count, reduction.sorted_rules()
        )

        is_normal = not reduction.fired_rules and reduction.canonical == baseline.canonical

        finding = None
        if not is_normal:
            finding = self._classify(tx_class, reduction)

        proof = self.recorder.attest(
            transaction_id=transaction.id,
            input_word=word,
            canonical_word=reduction.canonical,
            fired_rules=reduction.fired_rules,
            step_count=reduction.step_count
        )

        latency_micros = int(round((time.perf_counter() - started) * 1_000_000))
        verdict = Verdict.APPROVED if finding is None else Verdict.BLOCKED

        if finding is None:
            logger.info("Transaction %s APPROVED (%s)", transaction.id, proof.content_hash)
        else:
            logger.warning(
                "Transaction %s BLOCKED: %s %s via %s (%s)",
                transaction.id, finding.severity, finding.code, finding.match.value, proof.content_hash
            )

        return VerificationResult(
            transaction_id=transaction.id,
            verdict=verdict,
            finding=finding,
            proof=proof,
            latency_micros=latency_micros,
            catalog_hash=self.catalog.get_hash(),
            reduction=reduction
        )

    def _classify(self, tx_class: TransactionClass, reduction: ReductionResult) -> Finding:
        """
        First signature in registry order whose canonical word equals the
        transaction's, or whose fired rules overlap the transaction's.
        Falls back to the first registered signature.
        """
        for fp in self._fingerprints[tx_class]:
            if reduction.canonical == fp.reduction.canonical:
                return Finding.from_signature(fp.signature, MatchKind.CANONICAL)
            if reduction.fired_rules & fp.reduction.fired_rules:
                return Finding.from_signature(fp.signature, MatchKind.RULES)

        return Finding.from_signature(self.catalog.fallback(tx_class), MatchKind.FALLBACK)
