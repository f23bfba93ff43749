"""
Correction layer for entity annotations.

Runs after every other recognizer and is the only stage that rewrites
annotations written upstream: forget patterns drop annotations first, then
add patterns attach new ones.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List

from .core import ConfigurationError, Document
from .pattern import Pattern, UnitInput, match_patterns

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Correction:
    """A pattern paired with the entity type it forgets or adds."""

    entity_type: str
    pattern: Pattern


class Neuralyzer:
    def __init__(self, tag: str):
        self.tag = tag
        self._forget: List[Correction] = []
        self._add: List[Correction] = []
        self._frozen = False

    def __repr__(self):
        return (
            f"Neuralyzer(tag={self.tag!r}, forget={len(self._forget)}, "
            f"add={len(self._add)})"
        )

    @property
    def forget_patterns(self) -> List[Correction]:
        return list(self._forget)

    @property
    def add_patterns(self) -> List[Correction]:
        return list(self._add)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self):
        self._frozen = True

    def _teach(self, target: List[Correction], entity_type, name, units):
        if self._frozen:
            raise ConfigurationError(
                f"Neuralyzer '{self.tag}' is frozen; teach patterns before processing"
            )
        if not entity_type:
            raise ConfigurationError(
                f"Neuralyzer '{self.tag}': pattern '{name}' needs an entity type"
            )
        correction = Correction(entity_type=entity_type, pattern=Pattern.of(name, units))
        target.append(correction)
        return correction

    def teach_forget_pattern(
        self, entity_type: str, name: str, units: Iterable[UnitInput]
    ) -> Correction:
        """Forget annotations of entity_type wherever the pattern matches."""
        correction = self._teach(self._forget, entity_type, name, units)
        logger.debug("Neuralyzer '%s': forget %s on '%s'", self.tag, entity_type, name)
        return correction

    def teach_add_pattern(
        self, entity_type: str, name: str, units: Iterable[UnitInput]
    ) -> Correction:
        """Annotate every match of the pattern with entity_type."""
        correction = self._teach(self._add, entity_type, name, units)
        logger.debug("Neuralyzer '%s': add %s on '%s'", self.tag, entity_type, name)
        return correction

    def process(self, document: Document) -> Document:
        forgotten = 0
        for correction in self._forget:
            for span, _ in match_patterns([correction.pattern], document):
                forgotten += len(document.remove_type(span, correction.entity_type))
        added = 0
        for correction in self._add:
            for span, _ in match_patterns([correction.pattern], document):
                document.annotate(span, correction.entity_type, self.tag)
                added += 1
        logger.info(
            "Neuralyzer '%s': forgot %d, added %d annotations",
            self.tag,
            forgotten,
            added,
        )
        return document
