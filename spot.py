#!/usr/bin/env python3

import argparse
import json
import logging
import sys
import time
from collections import Counter
from typing import Dict, List

import lark
import spacy

from tokspot.recognizers import Document
from tokspot.spot_parser import SPOT_DSL_VERSION, parse_file
from tokspot.spot_pipeline import Pipeline
from tokspot.spot_tokenizer import DEFAULT_MODEL, SpacyTokenizer

__version__ = "0.1.0"


def show_statistics(documents: List[Document], stage_times: Dict[str, float]):
    """Display entity counts by type and source, plus stage timings."""
    by_type = Counter()
    by_source = Counter()
    for doc in documents:
        for annotation in doc.annotations():
            by_type[annotation.entity_type] += 1
            by_source[annotation.source] += 1

    sys.stderr.write("=== Entity Statistics ===\n")
    sys.stderr.write(f"Documents: {len(documents)}\n")
    sys.stderr.write(f"Entities: {sum(by_type.values())}\n")
    sys.stderr.write("\nEntities by type:\n")
    for entity_type, count in by_type.most_common():
        sys.stderr.write(f"  {entity_type}: {count}\n")
    sys.stderr.write("\nEntities by source:\n")
    for source, count in by_source.most_common():
        sys.stderr.write(f"  {source}: {count}\n")
    if stage_times:
        sys.stderr.write("\nStage breakdown:\n")
        for stage, seconds in stage_times.items():
            sys.stderr.write(f"  {stage}: {seconds:.3f}s\n")
    sys.stderr.write("=========================\n\n")


def format_summary(doc: Document) -> str:
    """Human-readable report of one document's entities."""
    entities = "\n".join(
        f"\t{doc.span_text(a.span)} [{a.entity_type}]" for a in doc.annotations()
    )
    return (
        f"Input text:\n\t'{doc.text}'\n\n"
        f"Tokenized Value:\n\t'{doc.tokenized_value(merge_entities=True)}'\n\n"
        f"Entities: \n{entities}\n"
    )


def split_documents(text: str, per_line: bool) -> List[str]:
    if not per_line:
        return [text]
    return [line for line in text.splitlines() if line.strip()]


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Run tokspot entity recognizers over a text file."
    )
    parser.add_argument("rules_file", nargs="?", help="Path to spot rules file")
    parser.add_argument("text_file", nargs="?", help="Path to input text file")
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL,
        help="spaCy pipeline to tokenize and tag with, or blank:<lang> (default: %(default)s)",
    )
    parser.add_argument(
        "--per-line",
        action="store_true",
        help="Treat each non-empty line as a separate document",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker threads for processing documents",
    )
    parser.add_argument(
        "--no-correct",
        action="store_true",
        help="Skip the corrections block and emit uncorrected entities",
    )
    parser.add_argument(
        "--no-upstream",
        action="store_true",
        help="Ignore the entities predicted by the spaCy pipeline",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print a readable per-document report instead of JSON",
    )
    parser.add_argument(
        "--pretty-print",
        action="store_true",
        help="Emit all results in a single pretty-printed JSON array",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="WARNING",
        help="Set logging level",
    )
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress all progress updates",
    )
    parser.add_argument(
        "--show-stats",
        action="store_true",
        help="Show entity statistics",
    )
    parser.add_argument(
        "--show-timing",
        action="store_true",
        help="Show detailed timing information",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Write output to this file (UTF-8, LF line endings). If omitted, output goes to stdout.",
    )

    args = parser.parse_args(argv)

    if args.version:
        print("Version information:")
        print(f"  spacy: {spacy.__version__}")
        print(f"  lark: {lark.__version__}")
        print(f"  tokspot: {__version__}")
        print(f"  DSL: {SPOT_DSL_VERSION}")
        return 0

    if not args.rules_file or not args.text_file:
        parser.error("the following arguments are required: rules_file, text_file")
    if args.workers < 1:
        parser.error("--workers must be at least 1")

    overall_start_time = time.time()
    stage_times: Dict[str, float] = {}

    logging.basicConfig(
        level=getattr(logging, args.log_level), format="[%(levelname)s] %(message)s"
    )
    logger = logging.getLogger("tokspot")

    start = time.time()
    with open(args.text_file, "r", encoding="utf-8") as f:
        text = f.read()
    logger.info("Parsing rules from %s", args.rules_file)
    root = parse_file(args.rules_file)
    stage_times["parse"] = time.time() - start

    start = time.time()
    tokenizer = SpacyTokenizer(args.model, with_entities=not args.no_upstream)
    pipeline = Pipeline.from_rules(root, tokenizer=tokenizer, correct=not args.no_correct)
    stage_times["load"] = time.time() - start

    # spaCy pipelines are not shared across threads; tokenize up front
    start = time.time()
    documents = [tokenizer.tokenize(t) for t in split_documents(text, args.per_line)]
    stage_times["tokenize"] = time.time() - start

    start = time.time()
    if args.quiet:
        processed = pipeline.process_many(documents, workers=args.workers)
    else:

        def _status_callback(idx, total):
            pct = (idx / total * 100) if total else 0
            sys.stderr.write(f"\rProcessing: {idx}/{total} ({pct:.1f}%)")
            sys.stderr.flush()

        processed = pipeline.process_many(
            documents, workers=args.workers, progress_callback=_status_callback
        )
        sys.stderr.write("\n")
    stage_times["recognize"] = time.time() - start

    if args.show_timing:
        sys.stderr.write("\n=== Timings ===\n")
        for stage, seconds in stage_times.items():
            sys.stderr.write(f"  {stage}: {seconds:.3f}s\n")
        sys.stderr.write(f"Overall: {time.time() - overall_start_time:.3f}s\n")
        sys.stderr.write("===============\n\n")

    if args.show_stats:
        show_statistics(processed, stage_times)

    output = []
    for doc_index, doc in enumerate(processed):
        for entity in doc.to_dict()["entities"]:
            output.append({"document": doc_index, **entity})

    if not args.quiet:
        sys.stderr.write(
            f"Found {len(output)} entities across {len(processed)} documents\n"
        )

    output_stream = sys.stdout
    if args.output:
        output_stream = open(args.output, "w", encoding="utf-8", newline="\n")

    try:
        if args.summary:
            for doc in processed:
                output_stream.write(format_summary(doc))
                output_stream.write("\n")
        elif args.pretty_print:
            json.dump(output, output_stream, indent=2)
            output_stream.write("\n")
        else:
            for item in output:
                output_stream.write(json.dumps(item))
                output_stream.write("\n")
    finally:
        if args.output and output_stream is not sys.stdout:
            output_stream.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
