"""Tests for return-value assertion synthesis."""

from __future__ import annotations

import pytest

from testgen.synthesis import classify, synthesize_assertion


@pytest.mark.parametrize(
    ("text", "assertion"),
    [
        ("Result<i32, String>", "assert!(result.is_ok());"),
        ("io::Result<()>", "assert!(result.is_ok());"),
        ("Option<Config>", "assert!(result.is_some());"),
        ("Vec<String>", "assert!(!result.is_empty());"),
        ("String", "assert!(!result.is_empty());"),
        ("&str", "assert!(!result.is_empty());"),
        ("u64", "assert!(result >= 0);"),
        ("i32", "assert!(result >= 0);"),
        ("f32", "assert!(result >= 0.0);"),
        ("&usize", "assert!(*result >= 0);"),
        ("&f64", "assert!(*result >= 0.0);"),
        ("bool", None),
        ("Config", None),
        ("HashMap<String, i32>", None),
    ],
)
def test_assertion_for_category(text: str, assertion: str | None) -> None:
    assert synthesize_assertion(classify(text)) == assertion


def test_absent_return_emits_no_assertion() -> None:
    assert synthesize_assertion(None) is None
    assert synthesize_assertion(None, {"()": "assert!(true);"}) is None


def test_custom_result_variable() -> None:
    assert synthesize_assertion(classify("Option<u8>"), result_var="value") == (
        "assert!(value.is_some());"
    )


def test_error_name_override_replaces_success_assertion() -> None:
    overrides = {"ParseError": "assert!(result.is_err());"}
    descriptor = classify("Result<Config, ParseError>")
    assert synthesize_assertion(descriptor, overrides) == "assert!(result.is_err());"


def test_error_name_override_is_checked_before_declared_text() -> None:
    overrides = {
        "Result<u8, MyError>": "assert!(result.is_ok(), \"text\");",
        "MyError": "assert!(result.is_err());",
    }
    assert synthesize_assertion(classify("Result<u8, MyError>"), overrides) == (
        "assert!(result.is_err());"
    )


def test_override_by_text_path_and_name() -> None:
    overrides = {"Uuid": "assert!(!result.is_nil());"}
    assert synthesize_assertion(classify("uuid::Uuid"), overrides) == "assert!(!result.is_nil());"
    assert synthesize_assertion(classify("Config"), overrides) is None


def test_override_can_add_assertion_for_opaque_return() -> None:
    overrides = {"PathBuf": "assert!(result.exists());"}
    assert synthesize_assertion(classify("std::path::PathBuf"), overrides) == (
        "assert!(result.exists());"
    )
