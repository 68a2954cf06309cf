#!/usr/bin/env python3
"""
HeckeGate Command Line Interface

Usage:
    heckegate verify --transaction <file> [--catalog <file>] [--key <file>]
    heckegate reduce <generator> [<generator> ...]
    heckegate replay --transaction <file> --result <file> [--trust-store <file>]
    heckegate catalog [payment|invoice] [--catalog <file>]
    heckegate confluence [--max-length N] [--max-generator N]
    heckegate hash --file <file>
    heckegate keygen --output <file> [--trust-store <file>]

Exit codes: 0 approved / valid, 1 blocked / invalid, 2 rejected input.
"""

import argparse
import json
import sys


def load_json(path: str) -> dict:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def save_json(data: dict, path: str):
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2)


def load_catalog(path=None):
    from heckegate import SignatureCatalog, create_default_catalog

    if path:
        return SignatureCatalog.from_dict(load_json(path))
    return create_default_catalog()


def cmd_verify(args):
    """Verify one transaction."""
    from heckegate import (
        ProofRecorder,
        SigningService,
        Transaction,
        VerificationEngine,
    )

    recorder = ProofRecorder()
    if args.key:
        signer = SigningService()
        signer.load_key_file(args.key)
        recorder = ProofRecorder(signer)

    try:
        engine = VerificationEngine(load_catalog(args.catalog), recorder=recorder)
        tx = Transaction.from_dict(load_json(args.transaction))
        result = engine.verify(tx)
    except ValueError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    out = result.to_dict()
    if args.output:
        save_json(out, args.output)
        print(f"Result saved to: {args.output}")
    else:
        print(json.dumps(out, indent=2))

    if result.blocked():
        f = result.finding
        print(f"\n✗ BLOCKED: {f.severity} {f.code} ({f.name})", file=sys.stderr)
        if f.material_weakness:
            print("  SOX 404 material weakness", file=sys.stderr)
        return 1

    print("\n✓ APPROVED", file=sys.stderr)
    return 0


def cmd_reduce(args):
    """Reduce a word and print the trace."""
    from heckegate import HeckeGateError, format_word, reduce_word, validate_word

    try:
        word = validate_word(args.word)
    except HeckeGateError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    result = reduce_word(word)

    print(f"input:     {format_word(result.input)}")
    for i, step in enumerate(result.trace, 1):
        print(f"  {i:>2}. {step.rule.value} @{step.position} {step.description:<20} {format_word(step.word)}")
    print(f"canonical: {format_word(result.canonical)}")
    print(f"fired:     {', '.join(result.sorted_rules()) or 'none'}")
    return 0


def cmd_replay(args):
    """Replay a saved verification result."""
    from heckegate import ProofVerifier, Transaction, VerificationEngine

    trust_store = load_json(args.trust_store) if args.trust_store else None

    try:
        engine = VerificationEngine(load_catalog(args.catalog))
        tx = Transaction.from_dict(load_json(args.transaction))
    except ValueError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    result = ProofVerifier(engine, trust_store).verify(tx, load_json(args.result))

    if result.is_valid():
        print(f"✓ {result.outcome.value}")
        return 0

    print(f"✗ INVALID: {result.reason}")
    if result.details:
        print(json.dumps(result.details, indent=2))
    return 1


def cmd_catalog(args):
    """Print catalog registries with their fingerprints."""
    from heckegate import HeckeGateError, VerificationEngine, format_word

    try:
        catalog = load_catalog(args.catalog)
    except HeckeGateError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 2
    engine = VerificationEngine(catalog)
    classes = [args.type] if args.type else [c.value for c in catalog.classes()]

    print(f"{catalog.id} v{catalog.version}  {catalog.get_hash()}")
    for tx_class in classes:
        print(f"\n[{tx_class}] baseline {format_word(catalog.baseline(tx_class))}")
        for priority, (sig, red) in enumerate(engine.fingerprints(tx_class), 1):
            mw = "  MW" if sig.material_weakness else ""
            print(
                f"  {priority}. {sig.code:<13} {sig.severity.value:<8} "
                f"{format_word(sig.word):<14} -> {format_word(red.canonical):<12} "
                f"{','.join(red.sorted_rules())}{mw}"
            )
    return 0


def cmd_confluence(args):
    """Search for words whose normal form depends on rule order."""
    from heckegate import HeckeGateError, check_catalog_confluence, find_non_confluent_words, format_word

    try:
        catalog = load_catalog(args.catalog)
    except HeckeGateError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 2

    witnesses = find_non_confluent_words(args.max_length, args.max_generator, limit=args.limit)
    for w in witnesses:
        forms = " | ".join(format_word(f) for f in w.normal_forms)
        print(f"{format_word(w.word):<20} greedy {format_word(w.greedy):<20} forms {forms}")

    print(f"\n{len(witnesses)} non-confluent word(s) up to length {args.max_length}", file=sys.stderr)

    problems = check_catalog_confluence(catalog)
    if problems:
        for label, _ in problems:
            print(f"✗ catalog word {label} has several normal forms", file=sys.stderr)
        return 1

    print("✓ every catalog word has a single normal form", file=sys.stderr)
    return 0


def cmd_hash(args):
    """Canonical SHA-256 of a JSON file."""
    from heckegate import canonical_hash

    print(canonical_hash(load_json(args.file)))
    return 0


def cmd_keygen(args):
    """Generate an Ed25519 proof signing key."""
    from datetime import datetime
    from heckegate import SigningService

    service = SigningService()
    key_id = args.key_id or f"hecke-proof-{datetime.now().strftime('%Y%m%d')}-01"
    key_pair = service.generate_key_pair(key_id=key_id, validity_days=args.validity_days or 90)

    service.save_key_file(args.output)
    print(f"Signing key saved to: {args.output}")

    trust_store = service.get_trust_store()
    if args.trust_store:
        save_json(trust_store, args.trust_store)
        print(f"Trust store saved to: {args.trust_store}")
    else:
        print(json.dumps(trust_store, indent=2))

    print(f"\nGenerated key: {key_id}", file=sys.stderr)
    print(f"Valid until: {key_pair.valid_until.isoformat()}", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="heckegate",
        description="HeckeGate lifecycle verification CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  heckegate reduce 1 5 2 3 4
  heckegate verify -t tx.json -o result.json
  heckegate replay -t tx.json -r result.json
  heckegate catalog invoice
  heckegate confluence --max-length 5
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    verify_parser = subparsers.add_parser("verify", help="Verify a transaction")
    verify_parser.add_argument("-t", "--transaction", required=True, help="Transaction JSON file")
    verify_parser.add_argument("-c", "--catalog", help="Catalog JSON file (default: built-in)")
    verify_parser.add_argument("-k", "--key", help="Signing key JSON file")
    verify_parser.add_argument("-o", "--output", help="Output file for the result")
    verify_parser.set_defaults(func=cmd_verify)

    reduce_parser = subparsers.add_parser("reduce", help="Reduce a lifecycle word")
    reduce_parser.add_argument("word", nargs="*", type=int, help="Generators, e.g. 1 5 2 3 4")
    reduce_parser.set_defaults(func=cmd_reduce)

    replay_parser = subparsers.add_parser("replay", help="Replay a verification result")
    replay_parser.add_argument("-t", "--transaction", required=True, help="Transaction JSON file")
    replay_parser.add_argument("-r", "--result", required=True, help="Result JSON file")
    replay_parser.add_argument("-c", "--catalog", help="Catalog JSON file (default: built-in)")
    replay_parser.add_argument("-s", "--trust-store", help="Trust store JSON file")
    replay_parser.set_defaults(func=cmd_replay)

    catalog_parser = subparsers.add_parser("catalog", help="Show signature registries")
    catalog_parser.add_argument("type", nargs="?", choices=["payment", "invoice"])
    catalog_parser.add_argument("-c", "--catalog", help="Catalog JSON file (default: built-in)")
    catalog_parser.set_defaults(func=cmd_catalog)

    confluence_parser = subparsers.add_parser("confluence", help="Search for non-confluent words")
    confluence_parser.add_argument("-n", "--max-length", type=int, default=4)
    confluence_parser.add_argument("-g", "--max-generator", type=int, default=7)
    confluence_parser.add_argument("-l", "--limit", type=int, help="Stop after this many witnesses")
    confluence_parser.add_argument("-c", "--catalog", help="Catalog JSON file (default: built-in)")
    confluence_parser.set_defaults(func=cmd_confluence)

    hash_parser = subparsers.add_parser("hash", help="Canonical hash of a JSON file")
    hash_parser.add_argument("-f", "--file", required=True, help="JSON file to hash")
    hash_parser.set_defaults(func=cmd_hash)

    keygen_parser = subparsers.add_parser("keygen", help="Generate a proof signing key")
    keygen_parser.add_argument("-o", "--output", required=True, help="Output file for the signing key")
    keygen_parser.add_argument("-s", "--trust-store", help="Output file for the trust store")
    keygen_parser.add_argument("-k", "--key-id", help="Key identifier")
    keygen_parser.add_argument("-v", "--validity-days", type=int, help="Validity in days")
    keygen_parser.set_defaults(func=cmd_keygen)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
