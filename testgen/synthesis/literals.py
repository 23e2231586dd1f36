"""Default argument literals for classified parameter types."""

from __future__ import annotations

import re
from typing import Callable, Dict, Mapping, Optional

from ..models import TypeCategory, TypeDescriptor

_PLAIN_PATH_RE = re.compile(r"^[A-Za-z_]\w*(?:::[A-Za-z_]\w*)*$")


def synthesize_literal(
    descriptor: TypeDescriptor, overrides: Optional[Mapping[str, str]] = None
) -> str:
    """Return a literal expression for a parameter of the given type.

    A configured override replaces the category rule verbatim. The borrow
    marker for reference parameters is applied afterwards in both cases.
    """
    literal = lookup_override(descriptor, overrides)
    if literal is None:
        rule = _RULES.get(descriptor.category, _opaque_literal)
        literal = rule(descriptor)
    return _borrow(descriptor, literal)


def lookup_override(
    descriptor: TypeDescriptor, overrides: Optional[Mapping[str, str]]
) -> Optional[str]:
    """Return the first override keyed by declared text, path, then name."""
    if not overrides:
        return None
    for key in (descriptor.text, descriptor.path, descriptor.name):
        if key in overrides:
            return overrides[key]
    return None


def _borrow(descriptor: TypeDescriptor, literal: str) -> str:
    if not descriptor.is_reference:
        return literal
    # A string literal is already a shared borrow of str.
    if descriptor.name == "str" and not descriptor.mutable and literal == '""':
        return literal
    return f"&mut {literal}" if descriptor.mutable else f"&{literal}"


def _text_literal(descriptor: TypeDescriptor) -> str:
    if descriptor.name == "str":
        # `&mut String` coerces to `&mut str` at the call site.
        return "String::new()" if descriptor.mutable else '""'
    return f"{descriptor.path}::new()"


def _collection_literal(descriptor: TypeDescriptor) -> str:
    return f"{descriptor.path}::new()"


def _opaque_literal(descriptor: TypeDescriptor) -> str:
    if descriptor.text == "()":
        return "()"
    if descriptor.text == descriptor.path and _PLAIN_PATH_RE.match(descriptor.path):
        return f"{descriptor.path}::default()"
    return "Default::default()"


# FALLIBLE parameters fall through to the opaque rule.
_RULES: Dict[TypeCategory, Callable[[TypeDescriptor], str]] = {
    TypeCategory.BOOLEAN: lambda _: "false",
    TypeCategory.TEXT: _text_literal,
    TypeCategory.NUMERIC_INTEGER: lambda _: "0",
    TypeCategory.NUMERIC_FLOAT: lambda _: "0.0",
    TypeCategory.OPTIONAL: lambda _: "None",
    TypeCategory.COLLECTION: _collection_literal,
    TypeCategory.OPAQUE: _opaque_literal,
}


__all__ = ["lookup_override", "synthesize_literal"]
