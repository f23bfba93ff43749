"""
Token-sequence patterns.

A pattern is an ordered list of units. Each unit carries a cardinality and a
conjunction of constraints; each constraint tests one token attribute against
a set of accepted values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .core import ConfigurationError, Document, PartOfSpeech, Span


class ConstraintKind(Enum):
    TOKEN = "token"
    POS = "pos"
    ENTITY = "entity"


class Cardinality(Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"
    OPTIONAL = "optional"


@dataclass(frozen=True)
class Constraint:
    """One per-token test; the token passes if its attribute is any of values."""

    kind: ConstraintKind
    values: FrozenSet
    ignore_case: bool = False

    def __post_init__(self):
        if not self.values:
            raise ConfigurationError(f"Empty value set for {self.kind.value} constraint")
        if self.ignore_case and self.kind is not ConstraintKind.TOKEN:
            raise ConfigurationError("ignore_case only applies to token constraints")
        if self.kind is ConstraintKind.POS:
            object.__setattr__(
                self, "values", frozenset(PartOfSpeech.parse(v) for v in self.values)
            )
        elif self.ignore_case:
            object.__setattr__(
                self, "values", frozenset(v.lower() for v in self.values)
            )

    def test(self, document: Document, index: int) -> bool:
        token = document.tokens[index]
        if self.kind is ConstraintKind.TOKEN:
            return (token.norm if self.ignore_case else token.text) in self.values
        if self.kind is ConstraintKind.POS:
            return token.pos in self.values
        return not self.values.isdisjoint(document.entity_types_at(index))


@dataclass(frozen=True)
class PatternUnit:
    """A single matching step in a pattern."""

    cardinality: Cardinality
    constraints: Tuple[Constraint, ...]
    max_tokens: Optional[int] = None

    def __post_init__(self):
        if not self.constraints:
            raise ConfigurationError("A pattern unit needs at least one constraint")
        kinds = [c.kind for c in self.constraints]
        if len(set(kinds)) != len(kinds):
            raise ConfigurationError(
                "A pattern unit may hold at most one constraint of each kind"
            )
        if self.max_tokens is not None:
            if self.cardinality is not Cardinality.MULTIPLE:
                raise ConfigurationError("max_tokens only applies to multiple units")
            if self.max_tokens < 1:
                raise ConfigurationError("max_tokens must be at least 1")

    def accepts(self, document: Document, index: int) -> bool:
        return all(c.test(document, index) for c in self.constraints)

    def consume(self, document: Document, start: int) -> Optional[int]:
        """Greedily consume tokens from start; return the new position or None."""
        end = start
        limit = len(document.tokens)
        if self.cardinality is Cardinality.MULTIPLE:
            if self.max_tokens is not None:
                limit = min(limit, start + self.max_tokens)
            while end < limit and self.accepts(document, end):
                end += 1
            return end if end > start else None
        if end < limit and self.accepts(document, end):
            return end + 1
        if self.cardinality is Cardinality.OPTIONAL:
            return end
        return None


class Prototype:
    """
    Fluent builder for pattern units.

        Prototype.single().with_token("is").with_pos(PartOfSpeech.VERB)
    """

    def __init__(self, cardinality: Cardinality, max_tokens: Optional[int] = None):
        self.cardinality = cardinality
        self.max_tokens = max_tokens
        self.constraints: List[Constraint] = []

    @classmethod
    def single(cls) -> "Prototype":
        return cls(Cardinality.SINGLE)

    @classmethod
    def multiple(cls, max_tokens: Optional[int] = None) -> "Prototype":
        return cls(Cardinality.MULTIPLE, max_tokens=max_tokens)

    @classmethod
    def optional(cls) -> "Prototype":
        return cls(Cardinality.OPTIONAL)

    def _with(self, kind: ConstraintKind, values: Iterable, ignore_case=False):
        self.constraints.append(Constraint(kind, frozenset(values), ignore_case))
        return self

    def with_token(self, *values: str) -> "Prototype":
        return self._with(ConstraintKind.TOKEN, values)

    def with_token_ignore_case(self, *values: str) -> "Prototype":
        return self._with(ConstraintKind.TOKEN, values, ignore_case=True)

    def with_pos(self, *tags: Union[str, PartOfSpeech]) -> "Prototype":
        return self._with(ConstraintKind.POS, tags)

    def with_entity_type(self, *types: str) -> "Prototype":
        return self._with(ConstraintKind.ENTITY, types)

    def build(self) -> PatternUnit:
        return PatternUnit(
            cardinality=self.cardinality,
            constraints=tuple(self.constraints),
            max_tokens=self.max_tokens,
        )


UnitInput = Union[PatternUnit, Prototype]


def to_unit(unit: UnitInput) -> PatternUnit:
    if isinstance(unit, Prototype):
        return unit.build()
    if isinstance(unit, PatternUnit):
        return unit
    raise ConfigurationError(f"Not a pattern unit: {unit!r}")


@dataclass(frozen=True)
class Pattern:
    """A named, ordered sequence of pattern units."""

    name: str
    units: Tuple[PatternUnit, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.units:
            raise ConfigurationError(f"Pattern '{self.name}' has no units")
        if all(u.cardinality is Cardinality.OPTIONAL for u in self.units):
            raise ConfigurationError(
                f"Pattern '{self.name}' must contain a non-optional unit"
            )

    @classmethod
    def of(cls, name: str, units: Iterable[UnitInput]) -> "Pattern":
        return cls(name=name, units=tuple(to_unit(u) for u in units))

    def match_at(self, document: Document, start: int) -> Optional[int]:
        """Return the exclusive end of a match starting at start, or None."""
        position = start
        for unit in self.units:
            position = unit.consume(document, position)
            if position is None:
                return None
        return position if position > start else None


def match_patterns(
    patterns: Sequence[Pattern], document: Document
) -> List[Tuple[Span, Pattern]]:
    """
    Scan the document left to right for non-overlapping pattern matches.

    At each start position the patterns are tried in order and the first one
    that matches wins; scanning resumes after the matched span.
    """
    results: List[Tuple[Span, Pattern]] = []
    if not patterns:
        return results
    i = 0
    n = len(document.tokens)
    while i < n:
        for pattern in patterns:
            end = pattern.match_at(document, i)
            if end is not None:
                results.append((Span(i, end), pattern))
                i = end
                break
        else:
            i += 1
    return results
