"""
Gazetteer spotter: exact multi-token phrase lookup over a token stream.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set

from .core import ConfigurationError, Document, Span, TokenInput, as_document

logger = logging.getLogger(__name__)

# Trie key marking the end of an entry; never equal to token text
_TERMINAL = object()


class Spotter:
    """
    Matches registered phrases against a document, preferring the longest
    entry at each start position. Matches never overlap.

    Entries are tokenized on whitespace when registered and kept in a token
    trie keyed by the (optionally case-folded) token text.
    """

    def __init__(self, tag: str, capture_tag: str, ignore_case: bool = False):
        self.tag = tag
        self.capture_tag = capture_tag
        self.ignore_case = ignore_case
        self._entries: List[str] = []
        self._trie: Dict = {}
        self._frozen = False

    def __repr__(self):
        return (
            f"Spotter(tag={self.tag!r}, capture_tag={self.capture_tag!r}, "
            f"entries={len(self._entries)})"
        )

    @property
    def entries(self) -> List[str]:
        return list(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self):
        self._frozen = True

    def _fold(self, text: str) -> str:
        return text.lower() if self.ignore_case else text

    def add_entry(self, text: str):
        if self._frozen:
            raise ConfigurationError(
                f"Spotter '{self.tag}' is frozen; register entries before processing"
            )
        parts = (text or "").split()
        if not parts:
            raise ConfigurationError(f"Spotter '{self.tag}': empty gazetteer entry")
        node = self._trie
        for part in parts:
            node = node.setdefault(self._fold(part), {})
        node[_TERMINAL] = text
        self._entries.append(text)
        logger.debug("Spotter '%s': added entry %r (%d tokens)", self.tag, text, len(parts))

    def add_entries(self, texts: Iterable[str]):
        for text in texts:
            self.add_entry(text)

    def tokenizer_exceptions(self) -> Set[str]:
        """Entry chunks that a tokenizer must keep as single tokens."""
        chunks = set()
        for entry in self._entries:
            for part in entry.split():
                if not part.isalnum():
                    chunks.add(part)
        return chunks

    def _longest_at(self, document: Document, start: int) -> Optional[int]:
        node = self._trie
        best = None
        i = start
        while i < len(document.tokens):
            node = node.get(self._fold(document.tokens[i].text))
            if node is None:
                break
            i += 1
            if _TERMINAL in node:
                best = i
        return best

    def match(self, tokens: TokenInput) -> List[Span]:
        document = as_document(tokens)
        spans: List[Span] = []
        i = 0
        n = len(document.tokens)
        while i < n:
            end = self._longest_at(document, i)
            if end is not None:
                spans.append(Span(i, end))
                i = end
            else:
                i += 1
        return spans

    def process(self, document: Document) -> Document:
        spans = self.match(document)
        for span in spans:
            document.annotate(span, self.capture_tag, self.tag)
        logger.info("Spotter '%s': %d matches", self.tag, len(spans))
        return document
