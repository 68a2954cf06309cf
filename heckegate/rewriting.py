"""
HeckeGate Rewriting Engine

Reduces a lifecycle word to canonical form under three rules taken from the
relations of the 0-Hecke monoid:

    R1  s_a s_a       -> s_a              (idempotent collapse)
    R2  s_a s_b       -> s_b s_a          |a - b| >= 2, a > b  (far commutation)
    R3  s_a s_b s_a   -> s_b s_a s_b      |a - b| == 1, a > b  (braid relation)

Rules are tried in strict priority order (R1, then R2, then R3) at the
leftmost applicable position. After every application the scan restarts
from R1 at the left end. Reduction stops when a full pass finds nothing to
rewrite.

Every application strictly lowers the potential (length, sum, inversions)
in lexicographic order, so reduction terminates for every finite word.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple


class RuleId(str, Enum):
    """Rewrite rule identifiers, in priority order."""
    R1 = "R1"
    R2 = "R2"
    R3 = "R3"


RULE_DESCRIPTIONS = {
    RuleId.R1: "Idempotent collapse",
    RuleId.R2: "Far commutation",
    RuleId.R3: "Braid relation",
}


@dataclass(frozen=True)
class RewriteStep:
    """One rule application. position is the 0-based index of the leftmost generator touched."""
    rule: RuleId
    position: int
    description: str
    word: Tuple[int, ...]

    def to_dict(self):
        return {
            "rule": self.rule.value,
            "position": self.position,
            "description": self.description,
            "word": list(self.word),
        }


@dataclass(frozen=True)
class ReductionResult:
    """Result of reducing one word. Pure function of the input."""
    input: Tuple[int, ...]
    canonical: Tuple[int, ...]
    trace: Tuple[RewriteStep, ...]
    fired_rules: FrozenSet[RuleId]

    @property
    def step_count(self) -> int:
        return len(self.trace)

    def sorted_rules(self) -> List[str]:
        return sorted(r.value for r in self.fired_rules)

    def to_dict(self):
        return {
            "input": list(self.input),
            "canonical": list(self.canonical),
            "steps": [s.to_dict() for s in self.trace],
            "fired": self.sorted_rules(),
        }


def find_r1(word: Sequence[int], start: int = 0) -> Optional[int]:
    for i in range(start, len(word) - 1):
        if word[i] == word[i + 1]:
            return i
    return None


def find_r2(word: Sequence[int], start: int = 0) -> Optional[int]:
    for i in range(start, len(word) - 1):
        a, b = word[i], word[i + 1]
        if a > b and a - b >= 2:
            return i
    return None


def find_r3(word: Sequence[int], start: int = 0) -> Optional[int]:
    for i in range(start, len(word) - 2):
        a, b = word[i], word[i + 1]
        if word[i + 2] == a and a - b == 1:
            return i
    return None


def apply_rule(word: Sequence[int], rule: RuleId, position: int) -> Tuple[int, ...]:
    """Apply one rule at one position. The caller guarantees the rule applies there."""
    w = list(word)
    if rule == RuleId.R1:
        del w[position + 1]
    elif rule == RuleId.R2:
        w[position], w[position + 1] = w[position + 1], w[position]
    else:
        a, b = w[position], w[position + 1]
        w[position:position + 3] = [b, a, b]
    return tuple(w)


_FINDERS = (
    (RuleId.R1, find_r1),
    (RuleId.R2, find_r2),
    (RuleId.R3, find_r3),
)


class RewriteEngine:
    """
    Deterministic reducer for lifecycle words.

    The engine holds no state between calls; one instance can serve any
    number of threads.
    """

    def reduce(self, word: Iterable[int]) -> ReductionResult:
        """
        Reduce a word to canonical form.

        Returns:
            ReductionResult with the canonical word, the ordered trace of
            applied steps and the set of rules that fired
        """
        original = tuple(word)
        current = original
        trace: List[RewriteStep] = []

        while True:
            for rule, finder in _FINDERS:
                position = finder(current)
                if position is not None:
                    current = apply_rule(current, rule, position)
                    trace.append(RewriteStep(
                        rule=rule,
                        position=position,
                        description=RULE_DESCRIPTIONS[rule],
                        word=current
                    ))
                    break
            else:
                break

        return ReductionResult(
            input=original,
            canonical=current,
            trace=tuple(trace),
            fired_rules=frozenset(step.rule for step in trace)
        )


_default_engine = RewriteEngine()


def reduce_word(word: Iterable[int]) -> ReductionResult:
    """Reduce a word with a shared default engine."""
    return _default_engine.reduce(word)
