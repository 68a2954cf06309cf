"""
HeckeGate Verification Engine Test Suite

Exercises the decision end to end:
- Reference scenarios for payment and invoice lifecycles
- Approval exactness: APPROVED only for the baseline word
- Fail-closed completeness: every other word carries a finding
- Registry priority and the fallback finding
- Boundary validation (InvalidWord, UnknownTransactionClass)
"""

import itertools
import logging
import unittest

from heckegate import (
    ClassRegistry,
    InvalidWord,
    MatchKind,
    Severity,
    Signature,
    SignatureCatalog,
    Transaction,
    UnknownTransactionClass,
    Verdict,
    VerificationEngine,
    create_default_catalog,
    create_invoice_signatures,
    create_payment_signatures,
    create_transaction,
)


def payment(word, tx_id="TXN-0042381920", amount=84250.00):
    return create_transaction(tx_id, "payment", word, amount=amount, counterparty="Siemens AG")


def invoice(word, tx_id="INV-2024-00871"):
    return create_transaction(tx_id, "invoice", word, amount=12400.00, counterparty="Bosch GmbH")


class TestReferenceScenarios(unittest.TestCase):

    def setUp(self):
        self.engine = VerificationEngine(create_default_catalog())

    def test_duplicate_initiation_blocked(self):
        result = self.engine.verify(payment([1, 1, 2, 3, 4, 5]))

        self.assertEqual(result.verdict, Verdict.BLOCKED)
        self.assertEqual(result.finding.code, "DUP-INIT")
        self.assertEqual(result.finding.severity, "HIGH")
        self.assertEqual(result.finding.match, MatchKind.CANONICAL)
        self.assertEqual(result.proof.canonical_word, (1, 2, 3, 4, 5))
        self.assertEqual(result.proof.step_count, 1)
        self.assertEqual(result.proof.fired_rules, ("R1",))

    def test_normal_payment_approved(self):
        result = self.engine.verify(payment([1, 2, 3, 4, 5]))

        self.assertEqual(result.verdict, Verdict.APPROVED)
        self.assertIsNone(result.finding)
        self.assertEqual(result.proof.fired_rules, ())
        self.assertFalse(result.blocked())

    def test_far_commutation_matches_first_r2_signature(self):
        result = self.engine.verify(payment([1, 5, 2, 3, 4]))

        self.assertEqual(result.proof.canonical_word, (1, 2, 3, 5, 4))
        self.assertEqual(result.proof.step_count, 2)
        self.assertEqual(result.proof.fired_rules, ("R2",))
        # EXEC-NO-AUTH shares R2 and is registered before EARLY-SETTLE
        self.assertEqual(result.finding.code, "EXEC-NO-AUTH")
        self.assertEqual(result.finding.match, MatchKind.RULES)

    def test_braid_relation_payment(self):
        result = self.engine.verify(payment([2, 1, 2]))

        self.assertEqual(result.proof.canonical_word, (1, 2, 1))
        self.assertEqual(result.proof.fired_rules, ("R3",))
        self.assertEqual(result.finding.code, "AUTH-BYPASS")
        self.assertEqual(result.finding.match, MatchKind.RULES)

    def test_braid_relation_invoice_falls_back(self):
        # No invoice signature fires R3, so the first entry is reported
        result = self.engine.verify(invoice([2, 1, 2]))

        self.assertEqual(result.verdict, Verdict.BLOCKED)
        self.assertEqual(result.finding.code, "DUP-PAY")
        self.assertEqual(result.finding.match, MatchKind.FALLBACK)

    def test_normal_invoice_approved(self):
        result = self.engine.verify(invoice([1, 2, 3, 4, 5, 6]))
        self.assertEqual(result.verdict, Verdict.APPROVED)

    def test_payment_baseline_is_not_invoice_baseline(self):
        result = self.engine.verify(invoice([1, 2, 3, 4, 5]))
        self.assertEqual(result.verdict, Verdict.BLOCKED)
        self.assertEqual(result.finding.match, MatchKind.FALLBACK)

    def test_duplicate_settlement(self):
        # Canonical form equals DUP-INIT's, which is registered first
        result = self.engine.verify(payment([1, 2, 3, 4, 5, 5]))
        self.assertEqual(result.finding.code, "DUP-INIT")

    def test_beneficiary_swap(self):
        result = self.engine.verify(payment([1, 2, 4, 3, 4, 5]))
        self.assertEqual(result.proof.canonical_word, (1, 2, 3, 4, 3, 5))
        self.assertEqual(result.finding.code, "AUTH-BYPASS")

    def test_invoice_without_po(self):
        result = self.engine.verify(invoice([1, 4, 2, 3, 5, 6]))
        self.assertEqual(result.finding.code, "NO-PO")
        self.assertEqual(result.finding.match, MatchKind.CANONICAL)
        self.assertEqual(result.finding.regulation, "SOX 404, ISAE 3402")

    def test_result_to_dict(self):
        d = self.engine.verify(payment([1, 1, 2, 3, 4, 5])).to_dict()

        self.assertEqual(d["transactionId"], "TXN-0042381920")
        self.assertEqual(d["verdict"], "BLOCKED")
        self.assertEqual(d["engine"], "HeckeGate")
        self.assertEqual(d["finding"]["code"], "DUP-INIT")
        self.assertEqual(d["finding"]["materialWeakness"], False)
        self.assertEqual(d["finding"]["control"], "ITGC-PM-01")
        self.assertEqual(d["proof"]["input"], "1-1-2-3-4-5")
        self.assertEqual(d["proof"]["canonical"], "1-2-3-4-5")
        self.assertEqual(d["proof"]["steps"], 1)
        self.assertEqual(d["proof"]["violated"], ["R1"])
        self.assertTrue(d["proof"]["hash"].startswith("sha256:"))
        self.assertEqual(d["catalogHash"], create_default_catalog().get_hash())
        self.assertIsInstance(d["latencyMicros"], int)
        self.assertGreaterEqual(d["latencyMicros"], 0)

    def test_approved_to_dict_has_null_finding(self):
        d = self.engine.verify(payment([1, 2, 3, 4, 5])).to_dict()
        self.assertIsNone(d["finding"])
        self.assertEqual(d["proof"]["violated"], [])


class TestDecisionCompleteness(unittest.TestCase):
    """APPROVED exactly for the baseline; every other word is BLOCKED with a finding."""

    def setUp(self):
        self.engine = VerificationEngine(create_default_catalog())
        self._logger = logging.getLogger("heckegate")
        self._level = self._logger.level
        self._logger.setLevel(logging.ERROR)

    def tearDown(self):
        self._logger.setLevel(self._level)

    def check(self, tx_class, baseline, max_length):
        for length in range(max_length + 1):
            for word in itertools.product(range(1, 8), repeat=length):
                result = self.engine.verify(create_transaction("TX-1", tx_class, word))
                if word == baseline:
                    self.assertEqual(result.verdict, Verdict.APPROVED)
                    self.assertIsNone(result.finding)
                else:
                    self.assertEqual(result.verdict, Verdict.BLOCKED, word)
                    self.assertIsNotNone(result.finding, word)

    def test_payment_exhaustive(self):
        self.check("payment", (1, 2, 3, 4, 5), 5)

    def test_invoice_short_words(self):
        self.check("invoice", (1, 2, 3, 4, 5, 6), 4)

    def test_truncated_lifecycle_is_blocked(self):
        # No rule fires, but the word is not the baseline
        result = self.engine.verify(payment([1, 2, 3]))
        self.assertEqual(result.verdict, Verdict.BLOCKED)
        self.assertEqual(result.finding.code, "DUP-INIT")
        self.assertEqual(result.finding.match, MatchKind.FALLBACK)

    def test_empty_lifecycle_is_blocked(self):
        result = self.engine.verify(payment([]))
        self.assertEqual(result.verdict, Verdict.BLOCKED)


class TestRegistryPriority(unittest.TestCase):

    def test_dup_init_shadows_split(self):
        engine = VerificationEngine(create_default_catalog())
        result = engine.verify(payment([1, 1, 2, 3, 4, 5]))
        self.assertEqual(result.finding.code, "DUP-INIT")

    def test_reordered_registry_changes_finding(self):
        signatures = create_payment_signatures()
        split = next(s for s in signatures if s.code == "SPLIT")
        reordered = (split,) + tuple(s for s in signatures if s.code != "SPLIT")
        catalog = SignatureCatalog(
            id="test.reordered",
            version="1.0.0",
            registries=(
                ClassRegistry("payment", (1, 2, 3, 4, 5), reordered),
                ClassRegistry("invoice", (1, 2, 3, 4, 5, 6), create_invoice_signatures()),
            ),
        )

        result = VerificationEngine(catalog).verify(payment([1, 1, 2, 3, 4, 5]))
        self.assertEqual(result.finding.code, "SPLIT")
        self.assertEqual(result.catalog_hash, catalog.get_hash())
        self.assertNotEqual(result.catalog_hash, create_default_catalog().get_hash())

    def test_fingerprints(self):
        engine = VerificationEngine(create_default_catalog())
        prints = {sig.code: red for sig, red in engine.fingerprints("invoice")}

        self.assertEqual(prints["PAY-NO-GR"].canonical, (1, 2, 3, 4, 6, 5))
        self.assertEqual(prints["PAY-NO-MATCH"].canonical, (1, 2, 3, 4, 6, 5))
        self.assertEqual(prints["INV-SPLIT"].sorted_rules(), ["R1"])


class TestCustomCatalog(unittest.TestCase):
    """Behavior that the default registries do not reach."""

    def setUp(self):
        material = Signature(
            code="PAY-NO-MATCH",
            name="Pay Before 3-Way Match",
            severity=Severity.CRITICAL,
            word=(1, 2, 3, 6, 4, 5),
            regulation="SOX 404",
            risk="Pay before reconciliation",
            control="ITGC-INV-05",
            material_weakness=True,
        )
        duplicate = Signature(
            code="DUP-PAY",
            name="Duplicate Vendor Payment",
            severity=Severity.CRITICAL,
            word=(1, 2, 3, 4, 5, 6, 6),
            regulation="SOX 404",
            risk="Vendor paid twice",
            control="ITGC-INV-02",
        )
        self.catalog = SignatureCatalog(
            id="test.custom",
            version="1.0.0",
            registries=(
                ClassRegistry("payment", (1, 2, 3, 4, 5), create_payment_signatures()),
                ClassRegistry("invoice", (1, 2, 3, 4, 5, 6), (duplicate, material)),
            ),
        )
        self.engine = VerificationEngine(self.catalog)

    def test_material_weakness_finding(self):
        result = self.engine.verify(invoice([1, 2, 3, 6, 4, 5]))

        self.assertEqual(result.finding.code, "PAY-NO-MATCH")
        self.assertTrue(result.finding.material_weakness)
        self.assertTrue(result.to_dict()["finding"]["materialWeakness"])

    def test_fallback_when_no_signature_matches(self):
        result = self.engine.verify(invoice([2, 1, 2]))

        self.assertEqual(result.verdict, Verdict.BLOCKED)
        self.assertEqual(result.proof.fired_rules, ("R3",))
        self.assertEqual(result.finding.code, "DUP-PAY")
        self.assertEqual(result.finding.match, MatchKind.FALLBACK)


class TestBoundaryValidation(unittest.TestCase):

    def setUp(self):
        self.engine = VerificationEngine(create_default_catalog())

    def test_generator_above_alphabet(self):
        with self.assertRaises(InvalidWord):
            payment([1, 2, 8])

    def test_zero_and_negative_generators(self):
        for word in ([0, 1], [1, -2]):
            with self.assertRaises(InvalidWord):
                payment(word)

    def test_non_integer_generators(self):
        for word in ([1, "2"], [1, 2.0], [True, 2]):
            with self.assertRaises(InvalidWord):
                payment(word)

    def test_word_too_long(self):
        with self.assertRaises(InvalidWord):
            payment([1] * 11)

    def test_word_at_length_bound(self):
        result = self.engine.verify(payment([1] * 10))
        self.assertEqual(result.proof.canonical_word, (1,))
        self.assertEqual(result.proof.step_count, 9)

    def test_string_word_rejected(self):
        with self.assertRaises(InvalidWord):
            Transaction.from_dict({
                "id": "TX-1", "type": "payment", "amount": 1.0, "currency": "EUR",
                "counterparty": "X", "lifecycleWord": "12345",
            })

    def test_unknown_class(self):
        with self.assertRaises(UnknownTransactionClass):
            create_transaction("TX-1", "refund", [1, 2, 3])

    def test_missing_lifecycle_word(self):
        with self.assertRaises(ValueError):
            Transaction.from_dict({
                "id": "TX-1", "type": "payment", "amount": 1.0, "currency": "EUR", "counterparty": "X",
            })

    def test_empty_id(self):
        with self.assertRaises(ValueError):
            create_transaction("", "payment", [1, 2, 3, 4, 5])

    def test_from_dict(self):
        tx = Transaction.from_dict({
            "id": "TXN-1", "type": "PAYMENT", "amount": 10.5, "currency": "EUR",
            "counterparty": "ACME", "lifecycleWord": [1, 2, 3, 4, 5], "purpose": "Rent",
        })
        self.assertEqual(tx.lifecycle_word, (1, 2, 3, 4, 5))
        self.assertEqual(tx.to_dict()["type"], "payment")
        self.assertEqual(tx.to_dict()["purpose"], "Rent")


if __name__ == "__main__":
    unittest.main(verbosity=2)
