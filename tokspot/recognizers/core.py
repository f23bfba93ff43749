"""
Core data structures for the tokspot recognizers.

Contains the token attribute model, spans, entity annotations and the
per-document annotation store shared by every recognizer.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union


class ConfigurationError(ValueError):
    """Raised when a recognizer, pattern or rules file is misconfigured."""


class PartOfSpeech(Enum):
    """Universal Dependencies coarse part-of-speech tags."""

    NONE = "NONE"
    ADJ = "ADJ"
    ADP = "ADP"
    ADV = "ADV"
    AUX = "AUX"
    CCONJ = "CCONJ"
    DET = "DET"
    INTJ = "INTJ"
    NOUN = "NOUN"
    NUM = "NUM"
    PART = "PART"
    PRON = "PRON"
    PROPN = "PROPN"
    PUNCT = "PUNCT"
    SCONJ = "SCONJ"
    SYM = "SYM"
    VERB = "VERB"
    X = "X"

    @classmethod
    def parse(cls, name: Union[str, "PartOfSpeech"]) -> "PartOfSpeech":
        if isinstance(name, cls):
            return name
        key = (name or "").strip().upper()
        if not key:
            return cls.NONE
        try:
            return cls[key]
        except KeyError:
            raise ConfigurationError(f"Unknown part of speech: {name!r}") from None


@dataclass(frozen=True)
class Token:
    """A single token of a tokenized document."""

    index: int
    text: str
    norm: str = ""
    pos: PartOfSpeech = PartOfSpeech.NONE
    offset: Optional[int] = None
    length: Optional[int] = None
    whitespace: str = " "

    def __post_init__(self):
        if not self.norm:
            object.__setattr__(self, "norm", self.text.lower())


@dataclass(frozen=True, order=True)
class Span:
    """A contiguous range [start, end) of token indices."""

    start: int
    end: int

    def __post_init__(self):
        if self.start < 0 or self.end <= self.start:
            raise ValueError(f"Invalid span [{self.start}, {self.end})")

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end

    def overlaps(self, other: "Span") -> bool:
        return self.start < other.end and other.start < self.end


@dataclass(frozen=True)
class EntityAnnotation:
    """An entity type attached to a span by a recognizer."""

    span: Span
    entity_type: str
    source: str


@dataclass
class Document:
    """
    A tokenized document together with its entity annotation store.

    The store holds at most one annotation per span; annotating a span that
    already carries one replaces it (last writer wins).
    """

    tokens: Tuple[Token, ...]
    text: Optional[str] = None
    _annotations: Dict[Span, EntityAnnotation] = field(
        default_factory=dict, repr=False
    )

    @classmethod
    def from_tokens(
        cls, tokens: Iterable[Token], text: Optional[str] = None
    ) -> "Document":
        indexed = []
        for i, token in enumerate(tokens):
            indexed.append(token if token.index == i else replace(token, index=i))
        return cls(tokens=tuple(indexed), text=text)

    @classmethod
    def from_words(
        cls,
        words: Sequence[str],
        pos: Optional[Sequence[Union[str, PartOfSpeech]]] = None,
    ) -> "Document":
        """Build a document from bare words, optionally with POS tags."""
        tags = list(pos) if pos is not None else [PartOfSpeech.NONE] * len(words)
        if len(tags) != len(words):
            raise ValueError("words and pos must have the same length")
        return cls.from_tokens(
            Token(index=i, text=w, pos=PartOfSpeech.parse(t))
            for i, (w, t) in enumerate(zip(words, tags))
        )

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self):
        return iter(self.tokens)

    def __getitem__(self, index: int) -> Token:
        return self.tokens[index]

    # === Annotation store ===

    def annotate(self, span: Span, entity_type: str, source: str) -> EntityAnnotation:
        if span.end > len(self.tokens):
            raise ValueError(
                f"Span [{span.start}, {span.end}) exceeds document of "
                f"{len(self.tokens)} tokens"
            )
        annotation = EntityAnnotation(span=span, entity_type=entity_type, source=source)
        self._annotations[span] = annotation
        return annotation

    def add_annotation(self, annotation: EntityAnnotation) -> EntityAnnotation:
        return self.annotate(annotation.span, annotation.entity_type, annotation.source)

    def remove(self, span: Span) -> Optional[EntityAnnotation]:
        return self._annotations.pop(span, None)

    def remove_type(self, span: Span, entity_type: str) -> List[EntityAnnotation]:
        """Remove every annotation of entity_type that overlaps span."""
        removed = [
            a
            for s, a in self._annotations.items()
            if a.entity_type == entity_type and s.overlaps(span)
        ]
        for annotation in removed:
            del self._annotations[annotation.span]
        return removed

    def annotation_for(self, span: Span) -> Optional[EntityAnnotation]:
        return self._annotations.get(span)

    def annotations(self) -> List[EntityAnnotation]:
        return sorted(self._annotations.values(), key=lambda a: a.span)

    def entity_types_at(self, index: int) -> Set[str]:
        return {
            a.entity_type for s, a in self._annotations.items() if s.contains(index)
        }

    def copy(self) -> "Document":
        return Document(
            tokens=self.tokens, text=self.text, _annotations=dict(self._annotations)
        )

    # === Rendering ===

    def span_text(self, span: Span) -> str:
        tokens = self.tokens[span.start : span.end]
        if (
            self.text is not None
            and tokens[0].offset is not None
            and tokens[-1].offset is not None
        ):
            end = tokens[-1].offset + (tokens[-1].length or len(tokens[-1].text))
            return self.text[tokens[0].offset : end]
        parts = []
        for i, token in enumerate(tokens):
            parts.append(token.text)
            if i < len(tokens) - 1:
                parts.append(token.whitespace)
        return "".join(parts)

    def tokenized_value(self, merge_entities: bool = False) -> str:
        if not merge_entities:
            return " ".join(t.text for t in self.tokens)
        starts: Dict[int, Span] = {}
        for annotation in self.annotations():
            span = annotation.span
            # Keep the longest span starting at each token
            if span.start not in starts or len(span) > len(starts[span.start]):
                starts[span.start] = span
        words = []
        i = 0
        while i < len(self.tokens):
            span = starts.get(i)
            if span is not None:
                words.append("_".join(t.text for t in self.tokens[span.start : span.end]))
                i = span.end
            else:
                words.append(self.tokens[i].text)
                i += 1
        return " ".join(words)

    def to_dict(self) -> Dict:
        entities = []
        for annotation in self.annotations():
            span = annotation.span
            first = self.tokens[span.start]
            last = self.tokens[span.end - 1]
            offset = first.offset
            length = None
            if offset is not None and last.offset is not None:
                length = last.offset + (last.length or len(last.text)) - offset
            entities.append(
                {
                    "start": span.start,
                    "end": span.end,
                    "offset": offset,
                    "length": length,
                    "type": annotation.entity_type,
                    "source": annotation.source,
                    "match": self.span_text(span),
                }
            )
        return {
            "text": self.text,
            "tokens": [
                {"text": t.text, "pos": t.pos.value, "offset": t.offset}
                for t in self.tokens
            ],
            "entities": entities,
        }


TokenInput = Union[Document, Sequence[Token]]


def as_document(tokens: TokenInput) -> Document:
    """Wrap a bare token sequence in a fresh Document."""
    if isinstance(tokens, Document):
        return tokens
    return Document.from_tokens(tokens)
