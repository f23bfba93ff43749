"""
Pattern spotter: annotates spans matching any of a set of named patterns.
"""

import logging
from typing import Dict, Iterable, List

from .core import ConfigurationError, Document, Span, TokenInput, as_document
from .pattern import Pattern, UnitInput, match_patterns

logger = logging.getLogger(__name__)


class PatternSpotter:
    """
    Token-level analogue of a regular expression search.

    Patterns are tried in registration order at each start position; the first
    one that matches wins and scanning resumes after its span.
    """

    def __init__(self, tag: str, capture_tag: str):
        self.tag = tag
        self.capture_tag = capture_tag
        self._patterns: Dict[str, Pattern] = {}
        self._frozen = False

    def __repr__(self):
        return (
            f"PatternSpotter(tag={self.tag!r}, capture_tag={self.capture_tag!r}, "
            f"patterns={list(self._patterns)})"
        )

    @property
    def patterns(self) -> List[Pattern]:
        return list(self._patterns.values())

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self):
        self._frozen = True

    def new_pattern(self, name: str, units: Iterable[UnitInput]) -> Pattern:
        if self._frozen:
            raise ConfigurationError(
                f"PatternSpotter '{self.tag}' is frozen; register patterns before processing"
            )
        if name in self._patterns:
            raise ConfigurationError(
                f"PatternSpotter '{self.tag}': duplicate pattern name '{name}'"
            )
        pattern = Pattern.of(name, units)
        self._patterns[name] = pattern
        logger.debug(
            "PatternSpotter '%s': registered '%s' with %d units",
            self.tag,
            name,
            len(pattern.units),
        )
        return pattern

    def match(self, tokens: TokenInput) -> List[Span]:
        document = as_document(tokens)
        return [span for span, _ in match_patterns(self.patterns, document)]

    def process(self, document: Document) -> Document:
        spans = self.match(document)
        for span in spans:
            document.annotate(span, self.capture_tag, self.tag)
        logger.info("PatternSpotter '%s': %d matches", self.tag, len(spans))
        return document
