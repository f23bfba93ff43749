import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest
import spacy
from spacy.tokens import Doc

from tokspot.recognizers import PartOfSpeech, Span
from tokspot.spot_tokenizer import (
    UPSTREAM_SOURCE,
    SpacyTokenizer,
    document_from_spacy,
    load_pipeline,
)


@pytest.fixture(scope="module")
def blank_nlp():
    return spacy.blank("en")


def test_blank_pipeline_tokenizes_with_offsets():
    tokenizer = SpacyTokenizer("blank:en")
    doc = tokenizer.tokenize("Rust is fast")
    assert [t.text for t in doc] == ["Rust", "is", "fast"]
    assert [t.offset for t in doc] == [0, 5, 8]
    assert all(t.pos is PartOfSpeech.NONE for t in doc)
    assert doc.text == "Rust is fast"
    assert doc.annotations() == []


def test_exceptions_keep_chunks_whole():
    tokenizer = SpacyTokenizer("blank:en", exceptions=["C#"])
    assert [t.text for t in tokenizer.tokenize("I write C# daily")] == [
        "I",
        "write",
        "C#",
        "daily",
    ]
    assert "c#" in [t.text for t in tokenizer.tokenize("i write c# daily")]


def test_document_from_spacy_maps_pos_and_entities(blank_nlp):
    sp_doc = Doc(
        blank_nlp.vocab,
        words=["Amazon", "hired", "Larry", "Page"],
        spaces=[True, True, True, False],
        pos=["PROPN", "VERB", "PROPN", "PROPN"],
        ents=["B-GPE", "O", "B-PERSON", "I-PERSON"],
    )
    doc = document_from_spacy(sp_doc)
    assert [t.pos for t in doc] == [
        PartOfSpeech.PROPN,
        PartOfSpeech.VERB,
        PartOfSpeech.PROPN,
        PartOfSpeech.PROPN,
    ]
    assert [(a.span, a.entity_type, a.source) for a in doc.annotations()] == [
        (Span(0, 1), "Location", UPSTREAM_SOURCE),
        (Span(2, 4), "Person", UPSTREAM_SOURCE),
    ]
    assert doc.span_text(Span(2, 4)) == "Larry Page"


def test_document_from_spacy_custom_label_map(blank_nlp):
    sp_doc = Doc(blank_nlp.vocab, words=["Acme", "Corp"], ents=["B-ORG", "I-ORG"])
    doc = document_from_spacy(sp_doc, label_map={})
    assert [a.entity_type for a in doc.annotations()] == ["ORG"]


def test_document_from_spacy_without_entities(blank_nlp):
    sp_doc = Doc(blank_nlp.vocab, words=["Acme"], ents=["B-ORG"])
    assert document_from_spacy(sp_doc, with_entities=False).annotations() == []


def test_whitespace_tokens_are_dropped(blank_nlp):
    sp_doc = blank_nlp("Berlin\n\nMunich")
    doc = document_from_spacy(sp_doc)
    assert [t.text for t in doc] == ["Berlin", "Munich"]
    assert [t.index for t in doc] == [0, 1]


def test_missing_model_raises_runtime_error():
    with pytest.raises(RuntimeError):
        load_pipeline("tokspot_no_such_model")
