#!/usr/bin/env python3
"""
HeckeGate Example - Batch of Payment and Invoice Lifecycles

Generates a seeded batch of demo transactions (about a quarter of them
following a known anomaly pattern), verifies each one, prints the verdicts
and replays every result as an auditor would.

Run with: python examples/lifecycle_example.py [count] [seed]
"""

import random
import sys
from collections import Counter

from heckegate import (
    ProofRecorder,
    ProofVerifier,
    SigningService,
    VerificationEngine,
    create_default_catalog,
    create_transaction,
    format_word,
)


VENDORS = ["Siemens AG", "Schneider Electric", "ABB Ltd", "SAP SE", "Bosch Rexroth", "Thales SA"]
CREDITORS = ["BNP Paribas SA", "Deutsche Bank", "Commerzbank", "ING Bank NV", "UniCredit SpA"]
PURPOSES = ["Supplier payment", "Service contract", "Software license", "Consulting", "Energy supply"]


def demo_transaction(rng: random.Random, catalog, anomaly_rate: float = 0.25):
    """One demo transaction; anomalous ones reuse a catalog signature word."""
    is_payment = rng.random() > 0.4
    tx_class = "payment" if is_payment else "invoice"
    anomalous = rng.random() < anomaly_rate

    word = catalog.baseline(tx_class)
    if anomalous:
        word = rng.choice(catalog.signatures(tx_class)).word

    amount = rng.uniform(15000, 395000) if anomalous else rng.uniform(500, 95500)
    prefix = "TXN-" if is_payment else "INV-"

    return create_transaction(
        transaction_id=f"{prefix}{rng.randrange(10 ** 10):010d}",
        transaction_class=tx_class,
        lifecycle_word=word,
        amount=round(amount, 2),
        currency="EUR",
        counterparty=rng.choice(CREDITORS if is_payment else VENDORS),
        purpose=rng.choice(PURPOSES),
    )


def main(count: int = 20, seed: int = 42):
    catalog = create_default_catalog()

    signer = SigningService()
    signer.generate_key_pair("hecke-proof-example-01")
    engine = VerificationEngine(catalog, recorder=ProofRecorder(signer))
    auditor = ProofVerifier(VerificationEngine(catalog), signer.get_trust_store())

    rng = random.Random(seed)
    verdicts = Counter()
    findings = Counter()

    print(f"Catalog {catalog.id} v{catalog.version}  {catalog.get_hash()}\n")

    for _ in range(count):
        tx = demo_transaction(rng, catalog)
        result = engine.verify(tx)
        replay = auditor.verify(tx, result.to_dict())

        verdicts[result.verdict.value] += 1
        line = f"{tx.id}  {tx.transaction_class.value:<8} {format_word(tx.lifecycle_word):<14} {result.verdict.value:<9}"
        if result.finding:
            findings[result.finding.code] += 1
            line += f"{result.finding.code:<13} {result.finding.severity:<8}"
        print(f"{line}  {result.latency_micros:>4}µs  replay {replay.outcome.value}")

    print(f"\n{dict(verdicts)}")
    for code, n in findings.most_common():
        print(f"  {code:<13} {n}")


if __name__ == "__main__":
    args = [int(a) for a in sys.argv[1:3]]
    main(*args)
