"""
HeckeGate error taxonomy.

Validation errors are raised at the boundary, before any reduction runs.
None of them ever produces a VerificationResult.
"""


class HeckeGateError(ValueError):
    """Base class for all HeckeGate validation errors."""


class InvalidWord(HeckeGateError):
    """Lifecycle word is not a bounded sequence of supported generators."""

    def __init__(self, message: str, word=None):
        super().__init__(message)
        self.word = word


class UnknownTransactionClass(HeckeGateError):
    """Transaction class is not one of the catalog keys."""

    def __init__(self, transaction_class):
        super().__init__(f"Unknown transaction class: {transaction_class!r}")
        self.transaction_class = transaction_class


class CatalogMisconfiguration(HeckeGateError):
    """Signature catalog failed validation at load time."""
