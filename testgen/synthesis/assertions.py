"""Assertion statements for classified return types."""

from __future__ import annotations

from typing import Mapping, Optional

from ..models import TypeCategory, TypeDescriptor
from .literals import lookup_override

RESULT_VAR = "result"


def synthesize_assertion(
    return_type: Optional[TypeDescriptor],
    overrides: Optional[Mapping[str, str]] = None,
    *,
    result_var: str = RESULT_VAR,
) -> Optional[str]:
    """Return the assertion to emit after the call, or None for a bare call.

    Each rule reflects how most library functions behave by convention
    rather than a guarantee; the non-negative check for numbers in
    particular fails for functions that legitimately return negatives.
    """
    if return_type is None:
        return None

    override = _lookup_assertion_override(return_type, overrides)
    if override is not None:
        return override

    category = return_type.category
    if category is TypeCategory.FALLIBLE:
        return f"assert!({result_var}.is_ok());"
    if category is TypeCategory.OPTIONAL:
        return f"assert!({result_var}.is_some());"
    if category in (TypeCategory.COLLECTION, TypeCategory.TEXT):
        return f"assert!(!{result_var}.is_empty());"
    if category.is_numeric:
        target = f"*{result_var}" if return_type.is_reference else result_var
        zero = "0.0" if category is TypeCategory.NUMERIC_FLOAT else "0"
        return f"assert!({target} >= {zero});"
    return None


def _lookup_assertion_override(
    return_type: TypeDescriptor, overrides: Optional[Mapping[str, str]]
) -> Optional[str]:
    if not overrides:
        return None
    if return_type.error_name and return_type.error_name in overrides:
        return overrides[return_type.error_name]
    return lookup_override(return_type, overrides)


__all__ = ["RESULT_VAR", "synthesize_assertion"]
