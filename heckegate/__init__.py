"""
HeckeGate Reference Implementation

Pre-execution verification of payment and invoice lifecycles.

A transaction's lifecycle word (the ordered steps it went through) is
reduced to canonical form with the relations of the 0-Hecke monoid. The
canonical form and the set of rewrite rules that fired form a fingerprint,
matched against an ordered catalog of fraud and control-failure signatures:

    VERIFY(transaction, catalog) ∈ { APPROVED, BLOCKED }

APPROVED only when the word is exactly the class baseline. Every other word
is BLOCKED with a concrete finding; an anomaly that matches no signature
falls back to the first registered one.

Usage:
    from heckegate import (
        VerificationEngine,
        create_default_catalog,
        create_transaction,
    )

    engine = VerificationEngine(create_default_catalog())

    tx = create_transaction("TXN-0042381920", "payment", [1, 1, 2, 3, 4, 5],
                            amount=84250.00, counterparty="Siemens AG")
    result = engine.verify(tx)

    if result.blocked():
        print(result.finding.code, result.proof.content_hash)
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Errors
from .errors import (
    HeckeGateError,
    InvalidWord,
    UnknownTransactionClass,
    CatalogMisconfiguration,
)

# Transactions
from .lifecycle import (
    MAX_GENERATOR,
    MAX_WORD_LENGTH,
    Transaction,
    TransactionClass,
    create_transaction,
    format_word,
    validate_word,
)

# Rewriting
from .rewriting import (
    RuleId,
    RewriteStep,
    ReductionResult,
    RewriteEngine,
    reduce_word,
)

# Analysis
from .analysis import (
    ConfluenceWitness,
    check_catalog_confluence,
    find_non_confluent_words,
    normal_forms,
    step_bound,
    termination_potential,
)

# Canonicalization and hashing
from .canonicalization import canonicalize, canonicalize_str
from .hashing import sha256_hash, canonical_hash

# Catalog
from .catalog import (
    Severity,
    Signature,
    ClassRegistry,
    SignatureCatalog,
    create_default_catalog,
    create_payment_signatures,
    create_invoice_signatures,
    PAYMENT_BASELINE,
    INVOICE_BASELINE,
)

# Proofs and signing
from .proof import ProofRecord, ProofRecorder, proof_hash
from .signing import SigningService, KeyPair, verify_signature

# Verification
from .engine import (
    VerificationEngine,
    VerificationResult,
    Verdict,
    Finding,
    MatchKind,
)

# Audit replay
from .verifier import (
    ProofVerifier,
    ReplayResult,
    ReplayOutcome,
    replay_result,
)


__all__ = [
    "__version__",

    # Errors
    "HeckeGateError",
    "InvalidWord",
    "UnknownTransactionClass",
    "CatalogMisconfiguration",

    # Transactions
    "MAX_GENERATOR",
    "MAX_WORD_LENGTH",
    "Transaction",
    "TransactionClass",
    "create_transaction",
    "format_word",
    "validate_word",

    # Rewriting
    "RuleId",
    "RewriteStep",
    "ReductionResult",
    "RewriteEngine",
    "reduce_word",

    # Analysis
    "ConfluenceWitness",
    "check_catalog_confluence",
    "find_non_confluent_words",
    "normal_forms",
    "step_bound",
    "termination_potential",

    # Canonicalization and hashing
    "canonicalize",
    "canonicalize_str",
    "sha256_hash",
    "canonical_hash",

    # Catalog
    "Severity",
    "Signature",
    "ClassRegistry",
    "SignatureCatalog",
    "create_default_catalog",
    "create_payment_signatures",
    "create_invoice_signatures",
    "PAYMENT_BASELINE",
    "INVOICE_BASELINE",

    # Proofs and signing
    "ProofRecord",
    "ProofRecorder",
    "proof_hash",
    "SigningService",
    "KeyPair",
    "verify_signature",

    # Verification
    "VerificationEngine",
    "VerificationResult",
    "Verdict",
    "Finding",
    "MatchKind",

    # Audit replay
    "ProofVerifier",
    "ReplayResult",
    "ReplayOutcome",
    "replay_result",
]
