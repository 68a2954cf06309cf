"""
HeckeGate Rewriting Analysis

Tools for catalog authors to check the two properties canonical-form
matching relies on:

- Termination: every rule lowers termination_potential() strictly.
- Confluence: a word whose normal form depends on the order in which rules
  are applied can canonicalize differently from an equivalent word.

The greedy strategy used by RewriteEngine is not confluent in general. The
shortest witness is 3-2-3-1, which greedy reduction takes to 3-2-1-3 while
applying the braid relation first gives 2-3-2-1. The default catalog words
and baselines all have a single normal form.
"""

import itertools
import logging
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Set, Tuple

from .lifecycle import MAX_GENERATOR
from .rewriting import RuleId, RewriteEngine, apply_rule, find_r1, find_r2, find_r3

logger = logging.getLogger(__name__)

STEP_BOUND_FACTOR = 5


def termination_potential(word: Sequence[int]) -> Tuple[int, int, int]:
    """
    Potential that every rewrite step lowers in lexicographic order.

    R1 removes a generator (length drops). R3 keeps the length and lowers
    the sum by one, since a,b,a becomes b,a,b with b = a - 1. R2 keeps
    length and sum and removes exactly one inversion.
    """
    inversions = sum(
        1
        for i in range(len(word))
        for j in range(i + 1, len(word))
        if word[i] > word[j]
    )
    return (len(word), sum(word), inversions)


def step_bound(length: int) -> int:
    """Upper bound on rule applications accepted for a word of this length."""
    return STEP_BOUND_FACTOR * length * length


def successors(word: Sequence[int]) -> List[Tuple[RuleId, int, Tuple[int, ...]]]:
    """Every single-step rewrite of a word, at every applicable position."""
    out = []
    for rule, finder in ((RuleId.R1, find_r1), (RuleId.R2, find_r2), (RuleId.R3, find_r3)):
        position = finder(word)
        while position is not None:
            out.append((rule, position, apply_rule(word, rule, position)))
            position = finder(word, position + 1)
    return out


def normal_forms(word: Iterable[int]) -> Set[Tuple[int, ...]]:
    """All irreducible words reachable from word under any rule order."""
    start = tuple(word)
    seen = {start}
    stack = [start]
    forms = set()

    while stack:
        current = stack.pop()
        nexts = successors(current)
        if not nexts:
            forms.add(current)
            continue
        for _, _, w in nexts:
            if w not in seen:
                seen.add(w)
                stack.append(w)

    return forms


@dataclass(frozen=True)
class ConfluenceWitness:
    """A word with more than one normal form."""
    word: Tuple[int, ...]
    normal_forms: Tuple[Tuple[int, ...], ...]
    greedy: Tuple[int, ...]

    def to_dict(self):
        return {
            "word": list(self.word),
            "normal_forms": [list(f) for f in self.normal_forms],
            "greedy": list(self.greedy),
        }


def witness_for(word: Iterable[int], engine: RewriteEngine = None):
    """Return a ConfluenceWitness if word has several normal forms, else None."""
    engine = engine or RewriteEngine()
    w = tuple(word)
    forms = normal_forms(w)
    if len(forms) < 2:
        return None
    return ConfluenceWitness(
        word=w,
        normal_forms=tuple(sorted(forms)),
        greedy=engine.reduce(w).canonical
    )


def find_non_confluent_words(
    max_length: int,
    max_generator: int = MAX_GENERATOR,
    limit: int = None
) -> List[ConfluenceWitness]:
    """
    Enumerate every word up to max_length over 1..max_generator and return
    those with more than one normal form, shortest first.

    The search space grows as max_generator ** max_length; lengths beyond
    6 take minutes.
    """
    engine = RewriteEngine()
    witnesses: List[ConfluenceWitness] = []

    for length in range(max_length + 1):
        for word in itertools.product(range(1, max_generator + 1), repeat=length):
            witness = witness_for(word, engine)
            if witness is not None:
                witnesses.append(witness)
                if limit is not None and len(witnesses) >= limit:
                    return witnesses

    return witnesses


def check_catalog_confluence(catalog) -> List[Tuple[str, ConfluenceWitness]]:
    """
    Check every signature word and baseline of a catalog.

    Returns (label, witness) pairs for each word whose normal form depends
    on rule order. Labels are "<class>:<code>" or "<class>:baseline".
    """
    engine = RewriteEngine()
    problems = []

    for tx_class in catalog.classes():
        baseline = catalog.baseline(tx_class)
        witness = witness_for(baseline, engine)
        if witness is not None:
            problems.append((f"{tx_class.value}:baseline", witness))

        for signature in catalog.signatures(tx_class):
            witness = witness_for(signature.word, engine)
            if witness is not None:
                problems.append((f"{tx_class.value}:{signature.code}", witness))

    for label, witness in problems:
        logger.warning(
            "Signature word %s has %d normal forms; greedy reduction gives %s",
            label, len(witness.normal_forms), "-".join(map(str, witness.greedy))
        )

    return problems
