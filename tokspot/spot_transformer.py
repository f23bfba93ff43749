"""
Spot Transformer: Lark tree transformer for the tokspot rules language.

This module provides the SpotTransformer class that converts Lark parse trees
into the typed AST in spot_ast. Constraint combinations are validated here so
that a bad rules file fails while it is being parsed.
"""

import re
from typing import Optional

from lark import Transformer, v_args

from tokspot import spot_ast as ast
from tokspot.recognizers.core import ConfigurationError, PartOfSpeech

RE_STRING_ESCAPE = re.compile(r"\\(.)")


@v_args(inline=True)  # This simplifies most method signatures
class SpotTransformer(Transformer):
    """
    Transformer that converts Lark parse trees into tokspot AST structures.
    """

    def __init__(self, rules_file_path: Optional[str] = None):
        super().__init__()
        self.rules_file_path = rules_file_path

    def root(self, version, *blocks):
        """Transform root node into version, recognizers and corrections."""
        recognizers = []
        corrections = None
        tags = set()
        for block in blocks:
            if block.tag in tags:
                raise ConfigurationError(f"Duplicate block tag '{block.tag}'")
            tags.add(block.tag)
            if isinstance(block, ast.CorrectionsDef):
                if corrections is not None:
                    raise ConfigurationError(
                        "Only one corrections block is allowed per rules file"
                    )
                corrections = block
            else:
                recognizers.append(block)
        return ast.Root(
            version=version,
            recognizers=tuple(recognizers),
            corrections=corrections,
            rules_file_path=self.rules_file_path,
        )

    def version_stmt(self, version_token):
        return ast.Version(value=str(version_token))

    # === Terminals ===

    def STRING(self, token):  # pylint: disable=invalid-name
        """Strip quotes and resolve backslash escapes."""
        return RE_STRING_ESCAPE.sub(r"\1", token.value[1:-1])

    def NAME(self, token):  # pylint: disable=invalid-name
        return str(token)

    def INT(self, token):  # pylint: disable=invalid-name
        return int(token)

    # === Gazetteers ===

    def gazetteer_block(self, tag, capture_tag, *items):
        flags = ()
        entries = ()
        for kind, values in items:
            if kind == "flags":
                flags = values
            else:
                entries = values
        return ast.GazetteerDef(
            tag=tag, capture_tag=capture_tag, entries=entries, flags=flags
        )

    def gazetteer_opts(self, *flags):
        return ("flags", tuple(str(f) for f in flags))

    def entry_list(self, *entries):
        for entry in entries:
            if not entry.split():
                raise ConfigurationError("Gazetteer entries must not be empty")
        return ("entries", tuple(entries))

    # === Patterns ===

    def spotter_block(self, tag, capture_tag, *patterns):
        names = [p.name for p in patterns]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Spotter '{tag}' has duplicate pattern names")
        return ast.SpotterDef(tag=tag, capture_tag=capture_tag, patterns=patterns)

    def pattern_def(self, name, *units):
        if all(u.cardinality == "optional" for u in units):
            raise ConfigurationError(
                f"Pattern '{name}' must contain a non-optional unit"
            )
        return ast.PatternDef(name=name, units=units)

    def unit(self, cardinality, *constraints):
        cardinality = str(cardinality)
        max_tokens = None
        defs = []
        for c in constraints:
            if isinstance(c, tuple):
                max_tokens = c[1]
            else:
                defs.append(c)
        if not defs:
            raise ConfigurationError(f"{cardinality}() needs at least one constraint")
        kinds = ["token" if d.kind == "itoken" else d.kind for d in defs]
        if len(set(kinds)) != len(kinds):
            raise ConfigurationError(
                f"{cardinality}() may hold at most one constraint of each kind"
            )
        if max_tokens is not None:
            if cardinality != "multiple":
                raise ConfigurationError("max= only applies to multiple()")
            if max_tokens < 1:
                raise ConfigurationError("max= must be at least 1")
        return ast.UnitDef(
            cardinality=cardinality, constraints=tuple(defs), max_tokens=max_tokens
        )

    def token_constraint(self, *values):
        return ast.ConstraintDef(kind="token", values=tuple(values))

    def itoken_constraint(self, *values):
        return ast.ConstraintDef(kind="itoken", values=tuple(values))

    def pos_constraint(self, *tags):
        # Unknown tags raise ConfigurationError
        return ast.ConstraintDef(
            kind="pos", values=tuple(PartOfSpeech.parse(t).value for t in tags)
        )

    def entity_constraint(self, *types):
        return ast.ConstraintDef(kind="entity", values=tuple(types))

    def max_constraint(self, value):
        return ("max", value)

    # === Corrections ===

    def corrections_block(self, tag, *corrections):
        return ast.CorrectionsDef(tag=tag, corrections=corrections)

    def correction(self, action, entity_type, name, *units):
        pattern = self.pattern_def(name, *units)
        return ast.CorrectionDef(
            action=str(action), entity_type=entity_type, pattern=pattern
        )
