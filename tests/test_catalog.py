"""
Signature catalog tests: construction, validation, hashing, JSON form.
"""

import unittest

from heckegate import (
    CatalogMisconfiguration,
    ClassRegistry,
    INVOICE_BASELINE,
    PAYMENT_BASELINE,
    Severity,
    Signature,
    SignatureCatalog,
    TransactionClass,
    UnknownTransactionClass,
    create_default_catalog,
    create_invoice_signatures,
    create_payment_signatures,
)


def make_signature(code="TEST", word=(1, 1, 2), severity=Severity.HIGH, **kwargs):
    return Signature(
        code=code,
        name=kwargs.get("name", code.title()),
        severity=severity,
        word=word,
        regulation=kwargs.get("regulation", "Test Reg"),
        risk=kwargs.get("risk", "Test risk"),
        control=kwargs.get("control", "TEST-01"),
        material_weakness=kwargs.get("material_weakness", False),
    )


def make_catalog(payment=None, invoice=None, payment_baseline=PAYMENT_BASELINE,
                 invoice_baseline=INVOICE_BASELINE, **kwargs):
    return SignatureCatalog(
        id=kwargs.get("id", "test.catalog"),
        version=kwargs.get("version", "1.0.0"),
        registries=(
            ClassRegistry(
                TransactionClass.PAYMENT,
                payment_baseline,
                create_payment_signatures() if payment is None else payment,
            ),
            ClassRegistry(
                TransactionClass.INVOICE,
                invoice_baseline,
                create_invoice_signatures() if invoice is None else invoice,
            ),
        ),
    )


class TestDefaultCatalog(unittest.TestCase):

    def setUp(self):
        self.catalog = create_default_catalog()

    def test_classes(self):
        self.assertEqual(self.catalog.classes(), [TransactionClass.PAYMENT, TransactionClass.INVOICE])

    def test_baselines(self):
        self.assertEqual(self.catalog.baseline("payment"), (1, 2, 3, 4, 5))
        self.assertEqual(self.catalog.baseline("invoice"), (1, 2, 3, 4, 5, 6))

    def test_payment_registry_order(self):
        codes = [s.code for s in self.catalog.signatures("payment")]
        self.assertEqual(codes, [
            "DUP-INIT", "DUP-SETTLE", "AUTH-BYPASS", "EXEC-NO-AUTH",
            "EARLY-SETTLE", "SPLIT", "REPLAY", "BEC",
        ])

    def test_invoice_registry_order(self):
        codes = [s.code for s in self.catalog.signatures("invoice")]
        self.assertEqual(codes, ["DUP-PAY", "NO-PO", "PAY-NO-GR", "PAY-NO-MATCH", "INV-SPLIT"])

    def test_fallback_is_first_entry(self):
        self.assertEqual(self.catalog.fallback("payment").code, "DUP-INIT")
        self.assertEqual(self.catalog.fallback(TransactionClass.INVOICE).code, "DUP-PAY")

    def test_only_pay_no_match_is_material_weakness(self):
        flagged = [
            s.code
            for cls in self.catalog.classes()
            for s in self.catalog.signatures(cls)
            if s.material_weakness
        ]
        self.assertEqual(flagged, ["PAY-NO-MATCH"])

    def test_unknown_class(self):
        with self.assertRaises(UnknownTransactionClass):
            self.catalog.registry("refund")

    def test_class_lookup_is_case_insensitive(self):
        self.assertEqual(self.catalog.registry("PAYMENT").transaction_class, TransactionClass.PAYMENT)

    def test_immutable(self):
        with self.assertRaises(Exception):
            self.catalog.version = "2.0.0"


class TestCatalogHash(unittest.TestCase):

    def test_hash_format(self):
        h = create_default_catalog().get_hash()
        self.assertTrue(h.startswith("sha256:"))
        self.assertEqual(len(h), 71)

    def test_hash_is_stable(self):
        self.assertEqual(create_default_catalog().get_hash(), create_default_catalog().get_hash())

    def test_reordering_changes_hash(self):
        signatures = create_payment_signatures()
        reordered = make_catalog(payment=signatures[1:] + signatures[:1])
        self.assertNotEqual(reordered.get_hash(), make_catalog().get_hash())

    def test_version_changes_hash(self):
        self.assertNotEqual(make_catalog(version="1.0.1").get_hash(), make_catalog().get_hash())


class TestCatalogValidation(unittest.TestCase):

    def test_invalid_id(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(id="Bad Id")

    def test_invalid_version(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(version="v1")

    def test_empty_registry(self):
        with self.assertRaises(CatalogMisconfiguration) as ctx:
            make_catalog(invoice=())
        self.assertIn("invoice", str(ctx.exception))

    def test_duplicate_code(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(payment=(make_signature("X"), make_signature("X", word=(2, 2))))

    def test_signature_word_outside_alphabet(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(payment=(make_signature("X", word=(1, 8)),))

    def test_signature_word_too_long(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(payment=(make_signature("X", word=(1,) * 11),))

    def test_baseline_not_ascending(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(payment_baseline=(1, 3, 2, 4, 5))

    def test_baseline_invalid(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_catalog(payment_baseline=(0, 1, 2))

    def test_missing_class(self):
        with self.assertRaises(CatalogMisconfiguration):
            SignatureCatalog(
                id="test.catalog",
                version="1.0.0",
                registries=(ClassRegistry("payment", PAYMENT_BASELINE, create_payment_signatures()),),
            )

    def test_class_registered_twice(self):
        payment = ClassRegistry("payment", PAYMENT_BASELINE, create_payment_signatures())
        with self.assertRaises(CatalogMisconfiguration):
            SignatureCatalog(id="test.catalog", version="1.0.0", registries=(payment, payment))

    def test_errors_are_value_errors(self):
        with self.assertRaises(ValueError):
            make_catalog(version="bad")


class TestCatalogSerialization(unittest.TestCase):

    def test_round_trip_preserves_hash(self):
        catalog = create_default_catalog()
        loaded = SignatureCatalog.from_dict(catalog.to_dict())
        self.assertEqual(loaded.get_hash(), catalog.get_hash())
        self.assertEqual(loaded.signatures("invoice")[3].material_weakness, True)

    def test_signature_from_dict_defaults(self):
        sig = Signature.from_dict({"code": "X", "name": "X", "severity": "HIGH", "word": [1, 1]})
        self.assertEqual(sig.word, (1, 1))
        self.assertEqual(sig.severity, Severity.HIGH)
        self.assertFalse(sig.material_weakness)

    def test_unknown_severity(self):
        with self.assertRaises(CatalogMisconfiguration):
            Signature.from_dict({"code": "X", "name": "X", "severity": "LOW", "word": [1]})

    def test_unknown_severity_direct(self):
        with self.assertRaises(CatalogMisconfiguration):
            make_signature(severity="LOW")

    def test_registries_not_a_list(self):
        data = create_default_catalog().to_dict()
        data["registries"] = 5
        with self.assertRaises(CatalogMisconfiguration):
            SignatureCatalog.from_dict(data)

    def test_integer_word(self):
        data = create_default_catalog().to_dict()
        data["registries"][0]["signatures"][0]["word"] = 7
        with self.assertRaises(CatalogMisconfiguration):
            SignatureCatalog.from_dict(data)

    def test_missing_field(self):
        data = create_default_catalog().to_dict()
        del data["registries"][0]["baseline"]
        with self.assertRaises(CatalogMisconfiguration):
            SignatureCatalog.from_dict(data)

    def test_unknown_class_in_file(self):
        data = create_default_catalog().to_dict()
        data["registries"][0]["type"] = "refund"
        with self.assertRaises(CatalogMisconfiguration):
            SignatureCatalog.from_dict(data)


if __name__ == "__main__":
    unittest.main(verbosity=2)
