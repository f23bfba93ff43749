from dataclasses import dataclass, field
from typing import Optional

# === Top-Level Nodes ===


@dataclass(frozen=True)
class Version:
    """Represents the rules language version."""

    value: str


@dataclass(frozen=True)
class GazetteerDef:
    """Represents a gazetteer block: a list of literal phrases."""

    tag: str
    capture_tag: str
    entries: tuple[str, ...] = field(default_factory=tuple)
    flags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ignore_case(self) -> bool:
        return "ignore-case" in self.flags


# === Pattern Nodes ===


@dataclass(frozen=True)
class ConstraintDef:
    """Represents one constraint inside a unit, e.g. pos=NOUN|PROPN."""

    kind: str  # token, itoken, pos or entity
    values: tuple[str, ...]


@dataclass(frozen=True)
class UnitDef:
    """Represents a pattern unit, e.g. single(token="is", pos=VERB)."""

    cardinality: str  # single, multiple or optional
    constraints: tuple[ConstraintDef, ...] = field(default_factory=tuple)
    max_tokens: Optional[int] = None


@dataclass(frozen=True)
class PatternDef:
    """Represents a named pattern inside a spotter block."""

    name: str
    units: tuple[UnitDef, ...]


@dataclass(frozen=True)
class SpotterDef:
    """Represents a spotter block holding one or more patterns."""

    tag: str
    capture_tag: str
    patterns: tuple[PatternDef, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class CorrectionDef:
    """Represents a forget or add statement inside a corrections block."""

    action: str  # forget or add
    entity_type: str
    pattern: PatternDef


@dataclass(frozen=True)
class CorrectionsDef:
    """Represents the corrections block."""

    tag: str
    corrections: tuple[CorrectionDef, ...] = field(default_factory=tuple)


# === Top-Level Root Structure ===


@dataclass(frozen=True)
class Root:
    """Represents the root of a parsed rules file."""

    version: Version
    recognizers: tuple  # GazetteerDef and SpotterDef, in file order
    corrections: Optional[CorrectionsDef] = None
    rules_file_path: Optional[str] = None
