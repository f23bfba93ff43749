from pathlib import Path
from typing import Optional

from lark import Lark
from lark.exceptions import VisitError

from tokspot.recognizers.core import ConfigurationError
from tokspot.spot_ast import Root
from tokspot.spot_transformer import SpotTransformer

# Rules language version. Bump together with spot_grammar.lark; files declaring
# any other version are rejected.
SPOT_DSL_VERSION = "1.0"

GRAMMAR_PATH = Path(__file__).parent / "spot_grammar.lark"
with open(GRAMMAR_PATH, "r", encoding="utf-8") as f:
    SPOT_GRAMMAR = f.read()

spot_parser = Lark(SPOT_GRAMMAR, start="root", parser="lalr", propagate_positions=True)


def parse_string(
    code: str, *, unwrap: bool = True, rules_file_path: Optional[str] = None
) -> Root:
    tree = spot_parser.parse(code)
    try:
        root = SpotTransformer(rules_file_path=rules_file_path).transform(tree)
    except VisitError as ve:
        if unwrap:
            raise ve.orig_exc from ve
        raise

    # Make sure the version matches the expected rules language version
    if root.version.value != SPOT_DSL_VERSION:
        raise ConfigurationError(
            f"Unsupported rules version: {root.version.value}. "
            f"Expected {SPOT_DSL_VERSION}."
        )
    return root


def parse_file(path, *, unwrap: bool = True) -> Root:
    with open(path, "r", encoding="utf-8") as file:
        return parse_string(file.read(), unwrap=unwrap, rules_file_path=str(path))
