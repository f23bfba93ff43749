"""
Pipeline driver for tokspot.

A Pipeline is an immutable, ordered list of recognizers followed by an
optional correction layer. Building one freezes every recognizer, so the same
pipeline can be shared by worker threads processing independent documents.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, Set, Union

from tokspot import spot_ast as ast
from tokspot.recognizers import (
    ConfigurationError,
    Document,
    EntityAnnotation,
    Neuralyzer,
    PatternSpotter,
    Prototype,
    Spotter,
    Token,
)

logger = logging.getLogger(__name__)

Recognizer = Union[Spotter, PatternSpotter]


def _prototype(unit: ast.UnitDef) -> Prototype:
    if unit.cardinality == "single":
        proto = Prototype.single()
    elif unit.cardinality == "multiple":
        proto = Prototype.multiple(max_tokens=unit.max_tokens)
    elif unit.cardinality == "optional":
        proto = Prototype.optional()
    else:
        raise ConfigurationError(f"Unknown cardinality '{unit.cardinality}'")
    for constraint in unit.constraints:
        if constraint.kind == "token":
            proto.with_token(*constraint.values)
        elif constraint.kind == "itoken":
            proto.with_token_ignore_case(*constraint.values)
        elif constraint.kind == "pos":
            proto.with_pos(*constraint.values)
        elif constraint.kind == "entity":
            proto.with_entity_type(*constraint.values)
        else:
            raise ConfigurationError(f"Unknown constraint '{constraint.kind}'")
    return proto


def build_recognizer(node) -> Recognizer:
    """Build a recognizer from a GazetteerDef or SpotterDef node."""
    if isinstance(node, ast.GazetteerDef):
        spotter = Spotter(node.tag, node.capture_tag, ignore_case=node.ignore_case)
        spotter.add_entries(node.entries)
        return spotter
    if isinstance(node, ast.SpotterDef):
        pattern_spotter = PatternSpotter(node.tag, node.capture_tag)
        for pattern in node.patterns:
            pattern_spotter.new_pattern(
                pattern.name, [_prototype(u) for u in pattern.units]
            )
        return pattern_spotter
    raise ConfigurationError(f"Not a recognizer definition: {node!r}")


def build_neuralyzer(node: ast.CorrectionsDef) -> Neuralyzer:
    neuralyzer = Neuralyzer(node.tag)
    for correction in node.corrections:
        units = [_prototype(u) for u in correction.pattern.units]
        if correction.action == "forget":
            neuralyzer.teach_forget_pattern(
                correction.entity_type, correction.pattern.name, units
            )
        else:
            neuralyzer.teach_add_pattern(
                correction.entity_type, correction.pattern.name, units
            )
    return neuralyzer


class Pipeline:
    """Runs recognizers in order, then the neuralyzer, over each document."""

    def __init__(
        self,
        recognizers: Iterable[Recognizer] = (),
        neuralyzer: Optional[Neuralyzer] = None,
        tokenizer=None,
    ):
        self.recognizers = tuple(recognizers)
        self.neuralyzer = neuralyzer
        self.tokenizer = tokenizer
        for recognizer in self.recognizers:
            recognizer.freeze()
        if neuralyzer is not None:
            neuralyzer.freeze()
        if tokenizer is not None:
            tokenizer.add_exceptions(self.tokenizer_exceptions())
        logger.debug(
            "Pipeline with %d recognizers%s",
            len(self.recognizers),
            " and a neuralyzer" if neuralyzer is not None else "",
        )

    @classmethod
    def from_rules(cls, root: ast.Root, tokenizer=None, correct: bool = True):
        recognizers = [build_recognizer(node) for node in root.recognizers]
        neuralyzer = None
        if correct and root.corrections is not None:
            neuralyzer = build_neuralyzer(root.corrections)
        return cls(recognizers, neuralyzer=neuralyzer, tokenizer=tokenizer)

    def with_neuralyzer(self, neuralyzer: Neuralyzer) -> "Pipeline":
        """Return a new pipeline sharing these recognizers, corrected by neuralyzer."""
        return Pipeline(self.recognizers, neuralyzer=neuralyzer, tokenizer=self.tokenizer)

    def tokenizer_exceptions(self) -> Set[str]:
        chunks: Set[str] = set()
        for recognizer in self.recognizers:
            if isinstance(recognizer, Spotter):
                chunks |= recognizer.tokenizer_exceptions()
        return chunks

    def process_document(self, document: Document) -> Document:
        for recognizer in self.recognizers:
            recognizer.process(document)
        if self.neuralyzer is not None:
            self.neuralyzer.process(document)
        return document

    def process(
        self, tokens: Sequence[Token], annotations: Iterable[EntityAnnotation] = ()
    ) -> List[EntityAnnotation]:
        document = Document.from_tokens(tokens)
        for annotation in annotations:
            document.add_annotation(annotation)
        return self.process_document(document).annotations()

    def process_text(self, text: str) -> Document:
        if self.tokenizer is None:
            raise ConfigurationError("Pipeline has no tokenizer; use process() instead")
        return self.process_document(self.tokenizer.tokenize(text))

    def process_many(
        self,
        documents: Sequence[Document],
        workers: int = 1,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[Document]:
        """
        Process independent documents, in parallel when workers > 1.

        Inputs are copied, so the caller's documents are left untouched.
        Results keep the input order.
        """
        total = len(documents)
        copies = [d.copy() for d in documents]
        results: List[Document] = []
        if workers <= 1:
            for doc in copies:
                results.append(self.process_document(doc))
                if progress_callback:
                    progress_callback(len(results), total)
            return results

        with ThreadPoolExecutor(max_workers=workers) as pool:
            for doc in pool.map(self.process_document, copies):
                results.append(doc)
                if progress_callback:
                    progress_callback(len(results), total)
        logger.info("Processed %d documents with %d workers", total, workers)
        return results
