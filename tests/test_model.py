import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from tokspot.recognizers import (
    ConfigurationError,
    Document,
    EntityAnnotation,
    PartOfSpeech,
    Span,
    Token,
    as_document,
)


def make_doc(text):
    """Whitespace-tokenized document with character offsets."""
    tokens = []
    offset = 0
    for i, word in enumerate(text.split(" ")):
        tokens.append(Token(index=i, text=word, offset=offset, length=len(word)))
        offset += len(word) + 1
    return Document.from_tokens(tokens, text=text)


def test_span_validation():
    assert len(Span(2, 5)) == 3
    with pytest.raises(ValueError):
        Span(3, 3)
    with pytest.raises(ValueError):
        Span(-1, 2)


def test_span_overlap_and_contains():
    span = Span(2, 5)
    assert span.contains(2)
    assert not span.contains(5)
    assert span.overlaps(Span(4, 6))
    assert not span.overlaps(Span(5, 6))
    assert Span(1, 2) < Span(1, 3) < Span(2, 3)


def test_token_norm_defaults_to_lowercase():
    token = Token(index=0, text="Python")
    assert token.norm == "python"
    assert token.pos is PartOfSpeech.NONE


def test_part_of_speech_parse():
    assert PartOfSpeech.parse("noun") is PartOfSpeech.NOUN
    assert PartOfSpeech.parse(" PROPN ") is PartOfSpeech.PROPN
    assert PartOfSpeech.parse("") is PartOfSpeech.NONE
    assert PartOfSpeech.parse(PartOfSpeech.VERB) is PartOfSpeech.VERB
    with pytest.raises(ConfigurationError):
        PartOfSpeech.parse("NOT_A_TAG")


def test_from_tokens_reindexes():
    doc = Document.from_tokens([Token(index=7, text="a"), Token(index=3, text="b")])
    assert [t.index for t in doc] == [0, 1]
    assert doc[1].text == "b"


def test_from_words_length_mismatch():
    with pytest.raises(ValueError):
        Document.from_words(["a", "b"], ["NOUN"])


def test_annotate_last_writer_wins():
    doc = Document.from_words(["Amazon", "rocks"])
    doc.annotate(Span(0, 1), "Location", "ner")
    doc.annotate(Span(0, 1), "Organization", "fix")
    assert doc.annotations() == [
        EntityAnnotation(span=Span(0, 1), entity_type="Organization", source="fix")
    ]


def test_annotate_rejects_out_of_range_span():
    doc = Document.from_words(["one"])
    with pytest.raises(ValueError):
        doc.annotate(Span(0, 2), "X", "test")


def test_overlapping_annotations_are_kept():
    doc = Document.from_words(["New", "York", "City"])
    doc.annotate(Span(0, 3), "Location", "a")
    doc.annotate(Span(0, 2), "Location", "b")
    assert [a.span for a in doc.annotations()] == [Span(0, 2), Span(0, 3)]
    assert doc.entity_types_at(2) == {"Location"}
    assert doc.entity_types_at(1) == {"Location"}


def test_remove_type_removes_overlapping_annotations_only():
    doc = Document.from_words(["Amazon", "Web", "Services", "rocks"])
    doc.annotate(Span(0, 3), "Location", "ner")
    doc.annotate(Span(1, 2), "Organization", "ner")
    doc.annotate(Span(3, 4), "Location", "ner")
    removed = doc.remove_type(Span(0, 1), "Location")
    assert [a.span for a in removed] == [Span(0, 3)]
    assert [a.span for a in doc.annotations()] == [Span(1, 2), Span(3, 4)]


def test_remove_returns_annotation():
    doc = Document.from_words(["x"])
    doc.annotate(Span(0, 1), "X", "t")
    assert doc.remove(Span(0, 1)).entity_type == "X"
    assert doc.remove(Span(0, 1)) is None
    assert doc.annotation_for(Span(0, 1)) is None


def test_copy_is_independent():
    doc = Document.from_words(["a", "b"])
    doc.annotate(Span(0, 1), "X", "t")
    clone = doc.copy()
    clone.annotate(Span(1, 2), "Y", "t")
    assert len(doc.annotations()) == 1
    assert len(clone.annotations()) == 2
    assert clone.tokens is doc.tokens


def test_span_text_uses_source_text():
    doc = make_doc("Sergey Brin founded Google")
    assert doc.span_text(Span(0, 2)) == "Sergey Brin"


def test_span_text_without_offsets():
    doc = Document.from_words(["Python", "3"])
    assert doc.span_text(Span(0, 2)) == "Python 3"


def test_tokenized_value_merges_entities():
    doc = Document.from_words(["Larry", "Page", "met", "Sergey", "Brin"])
    doc.annotate(Span(0, 2), "Person", "t")
    doc.annotate(Span(3, 5), "Person", "t")
    doc.annotate(Span(3, 4), "Person", "t")
    assert doc.tokenized_value() == "Larry Page met Sergey Brin"
    assert doc.tokenized_value(merge_entities=True) == "Larry_Page met Sergey_Brin"


def test_to_dict():
    doc = make_doc("I use Python 3 daily")
    doc.annotate(Span(2, 4), "ProgrammingLanguage", "programming")
    data = doc.to_dict()
    assert data["text"] == "I use Python 3 daily"
    assert len(data["tokens"]) == 5
    assert data["entities"] == [
        {
            "start": 2,
            "end": 4,
            "offset": 6,
            "length": 8,
            "type": "ProgrammingLanguage",
            "source": "programming",
            "match": "Python 3",
        }
    ]


def test_as_document_wraps_token_sequences():
    tokens = [Token(index=0, text="a")]
    doc = as_document(tokens)
    assert isinstance(doc, Document)
    assert as_document(doc) is doc


def test_empty_document():
    doc = Document.from_tokens([])
    assert len(doc) == 0
    assert doc.annotations() == []
    assert doc.tokenized_value(merge_entities=True) == ""
