"""Type classification and literal/assertion synthesis."""

from .assertions import RESULT_VAR, synthesize_assertion
from .classifier import TypeRef, classify, normalise_type_text, parse_type
from .literals import lookup_override, synthesize_literal

__all__ = [
    "RESULT_VAR",
    "TypeRef",
    "classify",
    "lookup_override",
    "normalise_type_text",
    "parse_type",
    "synthesize_assertion",
    "synthesize_literal",
]
