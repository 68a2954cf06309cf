"""
HeckeGate Signature Catalog

Static, ordered registries of anomaly signatures, one per transaction class.

Each signature pairs a compliance finding (name, severity, regulation, risk
narrative, control identifier, material-weakness flag) with a generator word.
The reduction of that word is the signature's fingerprint.

Registry order is the tie-break priority: when several signatures match a
transaction, the one registered first wins. Reordering a registry therefore
changes verification outcomes, and it changes get_hash(), so a reorder always
shows up as a new catalog revision.

A catalog is built once at startup and injected into the VerificationEngine.
It is immutable afterwards.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .analysis import check_catalog_confluence
from .errors import CatalogMisconfiguration, InvalidWord, UnknownTransactionClass
from .hashing import canonical_hash
from .lifecycle import MAX_GENERATOR, MAX_WORD_LENGTH, TransactionClass, validate_word

VERSION_PATTERN = re.compile(r'^[0-9]+\.[0-9]+\.[0-9]+$')
CATALOG_ID_PATTERN = re.compile(r'^[a-z][a-z0-9_.\-]*$')


class Severity(str, Enum):
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class Signature:
    """A named, regulation-tagged anomaly pattern."""
    code: str
    name: str
    severity: Severity
    word: Tuple[int, ...]
    regulation: str
    risk: str
    control: str
    material_weakness: bool = False

    def __post_init__(self):
        object.__setattr__(self, "word", tuple(self.word))
        try:
            object.__setattr__(self, "severity", Severity(self.severity))
        except ValueError:
            raise CatalogMisconfiguration(
                f"Signature {self.code!r} has unknown severity {self.severity!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "severity": self.severity.value,
            "word": list(self.word),
            "regulation": self.regulation,
            "risk": self.risk,
            "control": self.control,
            "material_weakness": self.material_weakness,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Signature":
        return cls(
            code=data["code"],
            name=data["name"],
            severity=data["severity"],
            word=tuple(data["word"]),
            regulation=data.get("regulation", ""),
            risk=data.get("risk", ""),
            control=data.get("control", ""),
            material_weakness=bool(data.get("material_weakness", False)),
        )


@dataclass(frozen=True)
class ClassRegistry:
    """Ordered signatures and the baseline normal word for one transaction class."""
    transaction_class: TransactionClass
    baseline: Tuple[int, ...]
    signatures: Tuple[Signature, ...]

    def __post_init__(self):
        object.__setattr__(self, "transaction_class", TransactionClass.parse(self.transaction_class))
        object.__setattr__(self, "baseline", tuple(self.baseline))
        object.__setattr__(self, "signatures", tuple(self.signatures))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.transaction_class.value,
            "baseline": list(self.baseline),
            "signatures": [s.to_dict() for s in self.signatures],
        }


@dataclass(frozen=True)
class SignatureCatalog:
    """
    Immutable signature catalog.

    Validation at construction raises CatalogMisconfiguration when:
    - id or version are malformed
    - a transaction class is missing or registered twice
    - a registry is empty (the fail-closed fallback needs a first entry)
    - a signature code appears twice in one registry
    - a signature word or baseline is not a valid lifecycle word
    - a baseline is not strictly ascending
    """
    id: str
    version: str
    registries: Tuple[ClassRegistry, ...]
    max_generator: int = MAX_GENERATOR
    max_word_length: int = MAX_WORD_LENGTH

    _hash: Optional[str] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "registries", tuple(self.registries))
        self._validate()
        object.__setattr__(self, "_hash", None)
        check_catalog_confluence(self)

    def _validate(self):
        if not CATALOG_ID_PATTERN.match(self.id):
            raise CatalogMisconfiguration(f"Invalid catalog id '{self.id}'")

        if not VERSION_PATTERN.match(self.version):
            raise CatalogMisconfiguration(f"Invalid version '{self.version}': must be semantic version")

        seen = set()
        for registry in self.registries:
            if registry.transaction_class in seen:
                raise CatalogMisconfiguration(
                    f"Transaction class registered twice: {registry.transaction_class.value}"
                )
            seen.add(registry.transaction_class)
            self._validate_registry(registry)

        missing = [c.value for c in TransactionClass if c not in seen]
        if missing:
            raise CatalogMisconfiguration(f"No registry for transaction classes: {missing}")

    def _validate_registry(self, registry: ClassRegistry):
        label = registry.transaction_class.value

        try:
            validate_word(registry.baseline, self.max_generator, self.max_word_length)
        except InvalidWord as e:
            raise CatalogMisconfiguration(f"Invalid {label} baseline: {e}")

        if any(a >= b for a, b in zip(registry.baseline, registry.baseline[1:])):
            raise CatalogMisconfiguration(
                f"The {label} baseline must be strictly ascending: {list(registry.baseline)}"
            )

        if not registry.signatures:
            raise CatalogMisconfiguration(f"The {label} registry has no signatures")

        codes = set()
        for signature in registry.signatures:
            if signature.code in codes:
                raise CatalogMisconfiguration(f"Duplicate signature code in {label} registry: {signature.code}")
            codes.add(signature.code)

            try:
                validate_word(signature.word, self.max_generator, self.max_word_length)
            except InvalidWord as e:
                raise CatalogMisconfiguration(f"Signature {label}:{signature.code} has an invalid word: {e}")

    def classes(self) -> List[TransactionClass]:
        return [r.transaction_class for r in self.registries]

    def registry(self, transaction_class) -> ClassRegistry:
        tx_class = TransactionClass.parse(transaction_class)
        for registry in self.registries:
            if registry.transaction_class == tx_class:
                return registry
        raise UnknownTransactionClass(transaction_class)

    def signatures(self, transaction_class) -> Tuple[Signature, ...]:
        """Signatures for a class, highest priority first."""
        return self.registry(transaction_class).signatures

    def baseline(self, transaction_class) -> Tuple[int, ...]:
        return self.registry(transaction_class).baseline

    def fallback(self, transaction_class) -> Signature:
        """The signature reported when an anomaly matches nothing: the first registered."""
        return self.signatures(transaction_class)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "max_generator": self.max_generator,
            "max_word_length": self.max_word_length,
            "registries": [r.to_dict() for r in self.registries],
        }

    def get_hash(self) -> str:
        """Compute and cache the catalog hash. Covers registry order."""
        if self._hash is None:
            object.__setattr__(self, "_hash", canonical_hash(self.to_dict()))
        return self._hash

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignatureCatalog":
        """Create a SignatureCatalog from its JSON form."""
        try:
            registries = []
            for r in data["registries"]:
                try:
                    tx_class = TransactionClass.parse(r["type"])
                except UnknownTransactionClass as e:
                    raise CatalogMisconfiguration(str(e))
                registries.append(ClassRegistry(
                    transaction_class=tx_class,
                    baseline=tuple(r["baseline"]),
                    signatures=tuple(Signature.from_dict(s) for s in r["signatures"]),
                ))

            return cls(
                id=data["id"],
                version=data["version"],
                registries=tuple(registries),
                max_generator=int(data.get("max_generator", MAX_GENERATOR)),
                max_word_length=int(data.get("max_word_length", MAX_WORD_LENGTH)),
            )
        except KeyError as e:
            raise CatalogMisconfiguration(f"Catalog is missing field {e}")
        except TypeError as e:
            raise CatalogMisconfiguration(f"Malformed catalog: {e}")


# Default registries

PAYMENT_BASELINE = (1, 2, 3, 4, 5)
INVOICE_BASELINE = (1, 2, 3, 4, 5, 6)


def create_payment_signatures() -> Tuple[Signature, ...]:
    """
    Payment signatures, highest priority first.

    DUP-INIT and SPLIT share a word; DUP-INIT is registered first and
    therefore always wins.
    """
    return (
        Signature(
            code="DUP-INIT",
            name="Duplicate Initiation",
            severity=Severity.HIGH,
            word=(1, 1, 2, 3, 4, 5),
            regulation="PSD3/PSR Art. 49",
            risk="Double debit on payer account",
            control="ITGC-PM-01",
        ),
        Signature(
            code="DUP-SETTLE",
            name="Duplicate Settlement",
            severity=Severity.CRITICAL,
            word=(1, 2, 3, 4, 5, 5),
            regulation="SFD 98/26/EC, DORA Art. 6",
            risk="Funds transferred twice",
            control="ITGC-PM-02",
        ),
        Signature(
            code="AUTH-BYPASS",
            name="Authentication Bypass",
            severity=Severity.CRITICAL,
            word=(1, 3, 2, 3, 4, 5),
            regulation="PSD2 SCA Art. 97",
            risk="No SCA before execution",
            control="ITGC-PM-03",
        ),
        Signature(
            code="EXEC-NO-AUTH",
            name="Exec Without Authorization",
            severity=Severity.CRITICAL,
            word=(1, 4, 2, 3, 5),
            regulation="PSD2 Art. 97(1)",
            risk="Funds moved before auth",
            control="ITGC-PM-04",
        ),
        Signature(
            code="EARLY-SETTLE",
            name="Premature Settlement",
            severity=Severity.CRITICAL,
            word=(1, 2, 5, 3, 4),
            regulation="SFD 98/26/EC",
            risk="Settlement before execution",
            control="ITGC-PM-05",
        ),
        Signature(
            code="SPLIT",
            name="Threshold Splitting",
            severity=Severity.HIGH,
            word=(1, 1, 2, 3, 4, 5),
            regulation="PSD2 RTS Art. 16",
            risk="SCA threshold circumvention",
            control="ITGC-PM-06",
        ),
        Signature(
            code="REPLAY",
            name="Transaction Replay",
            severity=Severity.CRITICAL,
            word=(1, 2, 2, 2, 3, 4, 5),
            regulation="PSD3/PSR Art. 83",
            risk="Previously executed TX replayed",
            control="ITGC-PM-07",
        ),
        Signature(
            code="BEC",
            name="Beneficiary Swap (BEC)",
            severity=Severity.CRITICAL,
            word=(1, 2, 4, 3, 4, 5),
            regulation="PSD2 Art. 64",
            risk="Beneficiary changed post-auth",
            control="ITGC-PM-08",
        ),
    )


def create_invoice_signatures() -> Tuple[Signature, ...]:
    """Invoice signatures, highest priority first."""
    return (
        Signature(
            code="DUP-PAY",
            name="Duplicate Vendor Payment",
            severity=Severity.CRITICAL,
            word=(1, 2, 3, 4, 5, 6, 6),
            regulation="SOX 404",
            risk="Vendor paid twice",
            control="ITGC-INV-02",
        ),
        Signature(
            code="NO-PO",
            name="Invoice Without PO",
            severity=Severity.CRITICAL,
            word=(1, 4, 2, 3, 5, 6),
            regulation="SOX 404, ISAE 3402",
            risk="No PO approval",
            control="ITGC-INV-03",
        ),
        Signature(
            code="PAY-NO-GR",
            name="Pay Before Goods Receipt",
            severity=Severity.CRITICAL,
            word=(1, 2, 6, 3, 4, 5),
            regulation="SOX 404",
            risk="Payment before goods received",
            control="ITGC-INV-04",
        ),
        Signature(
            code="PAY-NO-MATCH",
            name="Pay Before 3-Way Match",
            severity=Severity.CRITICAL,
            word=(1, 2, 3, 6, 4, 5),
            regulation="SOX 404",
            risk="Pay before reconciliation, material weakness",
            control="ITGC-INV-05",
            material_weakness=True,
        ),
        Signature(
            code="INV-SPLIT",
            name="Invoice Splitting",
            severity=Severity.HIGH,
            word=(1, 1, 2, 3, 4, 5, 6),
            regulation="SOX 404, EU 2014/24",
            risk="Threshold circumvention",
            control="ITGC-INV-06",
        ),
    )


def create_default_catalog() -> SignatureCatalog:
    """Build the built-in payment and invoice catalog."""
    return SignatureCatalog(
        id="hecke.default",
        version="1.0.0",
        registries=(
            ClassRegistry(
                transaction_class=TransactionClass.PAYMENT,
                baseline=PAYMENT_BASELINE,
                signatures=create_payment_signatures(),
            ),
            ClassRegistry(
                transaction_class=TransactionClass.INVOICE,
                baseline=INVOICE_BASELINE,
                signatures=create_invoice_signatures(),
            ),
        ),
    )
