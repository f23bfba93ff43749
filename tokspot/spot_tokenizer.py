"""
spaCy adapter: turns raw text into a tokspot Document.

spaCy provides tokenization, part-of-speech tags and, for trained pipelines,
statistical named entities. Those entities are seeded into the document as
upstream annotations so that later recognizers and corrections can see them.
"""

import logging
from typing import Dict, Iterable, Optional

import spacy
from spacy.symbols import ORTH

from tokspot.recognizers.core import (
    ConfigurationError,
    Document,
    PartOfSpeech,
    Span,
    Token,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "en_core_web_sm"
BLANK_PREFIX = "blank:"
UPSTREAM_SOURCE = "spacy"

# spaCy (OntoNotes) labels to the Location/Organization/Person/Miscellaneous scheme
DEFAULT_LABEL_MAP = {
    "GPE": "Location",
    "LOC": "Location",
    "FAC": "Location",
    "ORG": "Organization",
    "PERSON": "Person",
    "NORP": "Miscellaneous",
    "EVENT": "Miscellaneous",
    "PRODUCT": "Miscellaneous",
    "WORK_OF_ART": "Miscellaneous",
    "LAW": "Miscellaneous",
    "LANGUAGE": "Miscellaneous",
}


def load_pipeline(model: str = DEFAULT_MODEL):
    """Load a spaCy pipeline; 'blank:<lang>' gives a tokenizer-only pipeline."""
    if model.startswith(BLANK_PREFIX):
        return spacy.blank(model[len(BLANK_PREFIX) :])
    try:
        return spacy.load(model)
    except OSError as e:
        raise RuntimeError(
            f"spaCy model '{model}' is not installed. "
            f"Run: python -m spacy download {model}"
        ) from e


def _pos(tag: str) -> PartOfSpeech:
    if tag == "SPACE":
        return PartOfSpeech.X
    try:
        return PartOfSpeech.parse(tag)
    except ConfigurationError:
        logger.warning("Unmapped part of speech %r, using X", tag)
        return PartOfSpeech.X


def document_from_spacy(
    doc,
    with_entities: bool = True,
    label_map: Optional[Dict[str, str]] = None,
) -> Document:
    """Convert a spaCy Doc, dropping whitespace-only tokens."""
    label_map = DEFAULT_LABEL_MAP if label_map is None else label_map
    tokens = []
    index_of = {}
    for sp_token in doc:
        if sp_token.is_space:
            continue
        index_of[sp_token.i] = len(tokens)
        tokens.append(
            Token(
                index=len(tokens),
                text=sp_token.text,
                norm=sp_token.lower_,
                pos=_pos(sp_token.pos_),
                offset=sp_token.idx,
                length=len(sp_token.text),
                whitespace=sp_token.whitespace_,
            )
        )
    document = Document.from_tokens(tokens, text=doc.text)

    if with_entities:
        for ent in doc.ents:
            kept = [index_of[i] for i in range(ent.start, ent.end) if i in index_of]
            if not kept:
                continue
            entity_type = label_map.get(ent.label_, ent.label_)
            document.annotate(Span(kept[0], kept[-1] + 1), entity_type, UPSTREAM_SOURCE)
    return document


class SpacyTokenizer:
    """Tokenizer and tagger backed by a spaCy pipeline."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        exceptions: Iterable[str] = (),
        with_entities: bool = True,
        label_map: Optional[Dict[str, str]] = None,
        nlp=None,
    ):
        self.model = model
        self.with_entities = with_entities
        self.label_map = label_map
        self.nlp = nlp if nlp is not None else load_pipeline(model)
        self.add_exceptions(exceptions)
        logger.info("Loaded spaCy pipeline '%s' %s", model, self.nlp.pipe_names)

    def add_exceptions(self, chunks: Iterable[str]):
        """Keep each chunk (and its case variants) as a single token."""
        for chunk in chunks:
            for variant in {chunk, chunk.lower(), chunk.upper()}:
                self.nlp.tokenizer.add_special_case(variant, [{ORTH: variant}])
                logger.debug("Tokenizer exception %r", variant)

    def tokenize(self, text: str) -> Document:
        return document_from_spacy(
            self.nlp(text), with_entities=self.with_entities, label_map=self.label_map
        )
