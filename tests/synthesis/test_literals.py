"""Tests for parameter literal synthesis."""

from __future__ import annotations

import pytest

from testgen.models import TypeCategory
from testgen.synthesis import classify, synthesize_literal


@pytest.mark.parametrize(
    ("text", "literal"),
    [
        ("bool", "false"),
        ("String", "String::new()"),
        ("std::string::String", "std::string::String::new()"),
        ("i32", "0"),
        ("usize", "0"),
        ("f64", "0.0"),
        ("Option<String>", "None"),
        ("Option<Vec<u8>>", "None"),
        ("Vec<i32>", "Vec::new()"),
        ("VecDeque<String>", "VecDeque::new()"),
        ("Config", "Config::default()"),
        ("crate::model::Config", "crate::model::Config::default()"),
        ("HashMap<String, i32>", "Default::default()"),
        ("()", "()"),
        ("(u8, u8)", "Default::default()"),
        ("Result<i32, String>", "Default::default()"),
    ],
)
def test_literal_for_category(text: str, literal: str) -> None:
    assert synthesize_literal(classify(text)) == literal


def test_shared_str_reference_uses_plain_string_literal() -> None:
    assert synthesize_literal(classify("&str")) == '""'
    assert synthesize_literal(classify("&'static str")) == '""'


def test_mutable_str_reference_borrows_an_owned_string() -> None:
    assert synthesize_literal(classify("&mut str")) == "&mut String::new()"
    assert synthesize_literal(classify("&'a mut str")) == "&mut String::new()"


def test_references_are_borrowed_after_the_rule() -> None:
    assert synthesize_literal(classify("&String")) == "&String::new()"
    assert synthesize_literal(classify("&mut Vec<i32>")) == "&mut Vec::new()"
    assert synthesize_literal(classify("&Config")) == "&Config::default()"
    assert synthesize_literal(classify("&mut u32")) == "&mut 0"


def test_unrecognised_struct_falls_back_to_default_construction() -> None:
    descriptor = classify("Widget")
    assert descriptor.category is TypeCategory.OPAQUE
    assert synthesize_literal(descriptor) == "Widget::default()"


def test_override_by_declared_text_wins_over_path_and_name() -> None:
    overrides = {
        "HashMap<String, i32>": "HashMap::from([(String::new(), 1)])",
        "HashMap": "HashMap::new()",
    }
    assert synthesize_literal(classify("HashMap<String, i32>"), overrides) == (
        "HashMap::from([(String::new(), 1)])"
    )
    assert synthesize_literal(classify("HashMap<u8, u8>"), overrides) == "HashMap::new()"


def test_override_by_path_then_name() -> None:
    overrides = {"std::path::PathBuf": 'PathBuf::from("/tmp")', "PathBuf": 'PathBuf::from(".")'}
    assert synthesize_literal(classify("std::path::PathBuf"), overrides) == 'PathBuf::from("/tmp")'
    assert synthesize_literal(classify("PathBuf"), overrides) == 'PathBuf::from(".")'


def test_override_replaces_builtin_category_rule() -> None:
    overrides = {"i32": "42", "String": 'String::from("x")'}
    assert synthesize_literal(classify("i32"), overrides) == "42"
    assert synthesize_literal(classify("String"), overrides) == 'String::from("x")'


def test_override_is_borrowed_for_reference_parameters() -> None:
    overrides = {"Path": 'Path::new(".")'}
    assert synthesize_literal(classify("&Path"), overrides) == '&Path::new(".")'


def test_literal_synthesis_is_deterministic() -> None:
    descriptor = classify("&mut Vec<Option<String>>")
    assert synthesize_literal(descriptor) == synthesize_literal(descriptor)
