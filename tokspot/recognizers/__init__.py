"""
tokspot recognizers - token-level entity recognition components.

- core: token attribute model, spans and the annotation store
- pattern: pattern units, constraints and the sequence matcher
- gazetteer: exact multi-token phrase spotter
- pattern_spotter: named-pattern spotter
- neuralyzer: forget/add correction layer
"""

from .core import (
    ConfigurationError,
    Document,
    EntityAnnotation,
    PartOfSpeech,
    Span,
    Token,
    as_document,
)
from .gazetteer import Spotter
from .neuralyzer import Correction, Neuralyzer
from .pattern import (
    Cardinality,
    Constraint,
    ConstraintKind,
    Pattern,
    PatternUnit,
    Prototype,
    match_patterns,
)
from .pattern_spotter import PatternSpotter

__all__ = [
    "Cardinality",
    "ConfigurationError",
    "Constraint",
    "ConstraintKind",
    "Correction",
    "Document",
    "EntityAnnotation",
    "Neuralyzer",
    "PartOfSpeech",
    "Pattern",
    "PatternSpotter",
    "PatternUnit",
    "Prototype",
    "Span",
    "Spotter",
    "Token",
    "as_document",
    "match_patterns",
]
