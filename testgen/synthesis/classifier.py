"""Maps declared Rust type spellings onto a fixed set of semantic categories."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from ..models import TypeCategory, TypeDescriptor

_BOOLEAN_NAMES = frozenset({"bool"})
_TEXT_NAMES = frozenset({"String", "str"})
_INTEGER_NAMES = frozenset(
    {
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
    }
)
_FLOAT_NAMES = frozenset({"f32", "f64"})
_FALLIBLE_NAMES = frozenset({"Result"})
_OPTIONAL_NAMES = frozenset({"Option"})
_COLLECTION_NAMES = frozenset({"Vec", "VecDeque"})

_REFERENCE_RE = re.compile(r"^&\s*(?:'[A-Za-z_]\w*\s+)?(?P<mut>mut\b\s*)?")
_PATH_RE = re.compile(r"^[A-Za-z_]\w*(?:::[A-Za-z_]\w*)*$")
_OPAQUE_PREFIXES = ("impl ", "dyn ", "fn(", "fn (", "unsafe ", "extern ", "for<")
_OPENERS = {"<": ">", "(": ")", "[": "]"}
_CLOSERS = {">", ")", "]"}


@dataclass(frozen=True)
class TypeRef:
    """Textual shape of a declared type: reference marker, path and generic arguments."""

    text: str
    path: str
    name: str
    arguments: Tuple["TypeRef", ...] = ()
    is_reference: bool = False
    mutable: bool = False


def normalise_type_text(text: str) -> str:
    """Collapse whitespace so equivalent spellings compare equal."""
    value = re.sub(r"\s+", " ", text.strip())
    value = re.sub(r"\s*(::|<|(?<!-)>)\s*", r"\1", value)
    value = re.sub(r"\s*,\s*", ", ", value)
    value = re.sub(r"\(\s+", "(", value)
    value = re.sub(r"\s+\)", ")", value)
    return value


def parse_type(text: str) -> TypeRef:
    """Parse a verbatim type spelling into its textual shape.

    Never raises: anything that is not a plain path with optional generic
    arguments comes back as a ``TypeRef`` whose name is the whole text.
    """
    value = normalise_type_text(text)
    is_reference = False
    mutable = False
    match = _REFERENCE_RE.match(value)
    if match:
        is_reference = True
        mutable = bool(match.group("mut"))
        value = value[match.end() :].strip()

    if value.startswith("::"):
        value = value[2:]

    path, arguments = _split_generic(value)
    if path is None or not _PATH_RE.match(path):
        return TypeRef(
            text=value,
            path=value,
            name=value,
            is_reference=is_reference,
            mutable=mutable,
        )

    parsed_arguments = tuple(
        parse_type(argument)
        for argument in arguments
        if argument and not argument.startswith("'")
    )
    return TypeRef(
        text=value,
        path=path,
        name=path.rsplit("::", 1)[-1],
        arguments=parsed_arguments,
        is_reference=is_reference,
        mutable=mutable,
    )


def classify(value: Union[TypeRef, str]) -> TypeDescriptor:
    """Return the semantic classification of a declared type.

    The rules are checked in priority order and the first match wins;
    ``OPAQUE`` absorbs everything unrecognised, so this never fails.
    """
    type_ref = parse_type(value) if isinstance(value, str) else value
    name = type_ref.name
    arguments = type_ref.arguments
    inner: Optional[TypeDescriptor] = None
    error_name: Optional[str] = None

    if name in _BOOLEAN_NAMES:
        category = TypeCategory.BOOLEAN
    elif name in _TEXT_NAMES:
        category = TypeCategory.TEXT
    elif name in _INTEGER_NAMES:
        category = TypeCategory.NUMERIC_INTEGER
    elif name in _FLOAT_NAMES:
        category = TypeCategory.NUMERIC_FLOAT
    elif name in _FALLIBLE_NAMES and len(arguments) in (1, 2):
        category = TypeCategory.FALLIBLE
        inner = classify(arguments[0])
        if len(arguments) == 2:
            error_name = arguments[1].name
    elif name in _OPTIONAL_NAMES and len(arguments) == 1:
        category = TypeCategory.OPTIONAL
        inner = classify(arguments[0])
    elif name in _COLLECTION_NAMES and len(arguments) == 1:
        category = TypeCategory.COLLECTION
        inner = classify(arguments[0])
    else:
        category = TypeCategory.OPAQUE

    return TypeDescriptor(
        category=category,
        name=name,
        text=type_ref.text,
        path=type_ref.path,
        inner=inner,
        is_reference=type_ref.is_reference,
        mutable=type_ref.mutable,
        error_name=error_name,
    )


def _split_generic(value: str) -> Tuple[Optional[str], List[str]]:
    """Split ``Path<A, B>`` into ``("Path", ["A", "B"])``.

    Returns ``(None, [])`` when the text is not a path followed by one
    trailing generic argument list.
    """
    if not value or value.startswith(_OPAQUE_PREFIXES) or value[0] in "([*<!":
        return None, []

    start = value.find("<")
    if start == -1:
        return value, []
    if not value.endswith(">"):
        return None, []

    inner = value[start + 1 : -1]
    arguments = _split_top_level(inner)
    if arguments is None:
        return None, []
    return value[:start], arguments


def _split_top_level(text: str) -> Optional[List[str]]:
    parts: List[str] = []
    stack: List[str] = []
    current: List[str] = []
    for index, char in enumerate(text):
        if char in _OPENERS:
            stack.append(_OPENERS[char])
        elif char in _CLOSERS:
            if char == ">" and index > 0 and text[index - 1] == "-":
                current.append(char)
                continue
            if not stack or stack.pop() != char:
                return None
        elif char == "," and not stack:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    if stack:
        return None
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts


__all__ = ["TypeRef", "classify", "normalise_type_text", "parse_type"]
