"""Tests for test case assembly and Rust file rendering."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from testgen.config import TestGenConfig
from testgen.models import FunctionDescriptor, ParameterDescriptor, ProjectAnalysis
from testgen.rendering import SuiteBuilder, output_file_name, output_file_path
from testgen.synthesis import classify


def _function(
    name: str,
    params: tuple[tuple[str, str], ...] = (),
    returns: Optional[str] = None,
    module_path: tuple[str, ...] = ("shapes",),
    *,
    is_async: bool = False,
    is_unsafe: bool = False,
) -> FunctionDescriptor:
    return FunctionDescriptor(
        name=name,
        module_path=module_path,
        parameters=tuple(ParameterDescriptor(name=p, type=classify(t)) for p, t in params),
        return_type=classify(returns) if returns else None,
        is_async=is_async,
        is_unsafe=is_unsafe,
    )


def _analysis(root: Path, *functions: FunctionDescriptor) -> ProjectAnalysis:
    modules: dict[tuple[str, ...], list[FunctionDescriptor]] = {}
    for function in functions:
        modules.setdefault(function.module_path, []).append(function)
    return ProjectAnalysis(
        root=str(root),
        crate_name="sample_crate",
        modules={path: tuple(items) for path, items in modules.items()},
    )


def test_build_case_for_text_parameter_and_fallible_return(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    function = _function("parse", (("input", "&str"),), "Result<i32, ParseError>")

    case = builder.build_case(function, "sample_crate")

    assert case.test_name == "test_parse_integration"
    assert case.call_path == "sample_crate::shapes::parse"
    assert case.arguments == ('""',)
    assert case.assertion == "assert!(result.is_ok());"


def test_build_case_for_mutable_collection_without_return(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    function = _function("fill", (("buffer", "&mut Vec<i32>"),))

    case = builder.build_case(function, "sample_crate")

    assert case.arguments == ("&mut Vec::new()",)
    assert case.assertion is None


def test_build_case_for_optional_custom_struct_return(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    function = _function("find", (("id", "u32"),), "Option<User>")

    case = builder.build_case(function, "sample_crate")

    assert case.arguments == ("0",)
    assert case.assertion == "assert!(result.is_some());"


def test_build_case_for_opaque_parameter(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    function = _function("render", (("widget", "Widget"),))

    case = builder.build_case(function, "sample_crate")

    assert case.arguments == ("Widget::default()",)


def test_build_case_uses_configured_overrides(tmp_path: Path) -> None:
    config = TestGenConfig(root=tmp_path)
    config.types.mappings["Widget"] = "Widget::sample()"
    config.generation.custom_assertions["ParseError"] = "assert!(result.is_err());"
    builder = SuiteBuilder(config)
    function = _function("load", (("widget", "&Widget"),), "Result<(), ParseError>")

    case = builder.build_case(function, "sample_crate")

    assert case.arguments == ("&Widget::sample()",)
    assert case.assertion == "assert!(result.is_err());"


def test_argument_order_matches_parameter_order(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    function = _function(
        "mix",
        (("a", "bool"), ("b", "f32"), ("c", "String"), ("d", "Option<u8>"), ("e", "i64")),
    )

    case = builder.build_case(function, "sample_crate")

    assert case.arguments == ("false", "0.0", "String::new()", "None", "0")


def test_build_cases_applies_skip_prefixes_and_drops_empty_modules(tmp_path: Path) -> None:
    config = TestGenConfig(root=tmp_path)
    config.generation.skip_functions = ["internal_"]
    builder = SuiteBuilder(config)
    analysis = _analysis(
        tmp_path,
        _function("internal_only", module_path=("hidden",)),
        _function("area", returns="f64"),
        _function("internal_cache"),
    )

    cases = builder.build_cases(analysis)

    assert list(cases) == [("shapes",)]
    assert [case.function.name for case in cases[("shapes",)]] == ["area"]


def test_colliding_test_names_get_numeric_suffix(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    analysis = _analysis(tmp_path, _function("area"), _function("area"))

    cases = builder.build_cases(analysis)[("shapes",)]

    assert [case.test_name for case in cases] == ["test_area_integration", "test_area_integration_2"]


def test_render_produces_expected_integration_file(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    analysis = _analysis(
        tmp_path,
        _function("parse", (("input", "&str"),), "Result<i32, ParseError>"),
        _function("fill", (("buffer", "&mut Vec<i32>"),)),
    )

    (test_file,) = builder.render(analysis)

    assert test_file.path == str(tmp_path / "tests" / "shapes_tests.rs")
    assert test_file.module_path == ("shapes",)
    assert test_file.cases == 2
    assert test_file.content == (
        "// Generated by testgen for `sample_crate::shapes`.\n"
        "// These tests are starting points: review the arguments and tighten the assertions.\n"
        "\n"
        "// parse(input: &str) -> Result<i32, ParseError>\n"
        "#[test]\n"
        "fn test_parse_integration() {\n"
        '    let param_0 = "";\n'
        "    let result = sample_crate::shapes::parse(param_0);\n"
        "    assert!(result.is_ok());\n"
        "}\n"
        "\n"
        "// fill(buffer: &mut Vec<i32>)\n"
        "#[test]\n"
        "fn test_fill_integration() {\n"
        "    let param_0 = &mut Vec::new();\n"
        "    sample_crate::shapes::fill(param_0);\n"
        "}\n"
    )


def test_render_binds_unchecked_result_with_underscore(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    analysis = _analysis(tmp_path, _function("is_ready", returns="bool"))

    (test_file,) = builder.render(analysis)

    assert "    let _result = sample_crate::shapes::is_ready();\n" in test_file.content
    assert "assert!" not in test_file.content


def test_render_async_and_unsafe_calls(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    analysis = _analysis(
        tmp_path,
        _function("fetch", (("url", "String"),), "Vec<u8>", is_async=True),
        _function("peek", (("ptr", "*const u8"),), "u8", is_unsafe=True),
    )

    (test_file,) = builder.render(analysis)

    assert "tokio" in test_file.content.splitlines()[2]
    assert "#[tokio::test]\nasync fn test_fetch_integration() {\n" in test_file.content
    assert "let result = sample_crate::shapes::fetch(param_0).await;" in test_file.content
    assert "let param_0 = Default::default();" in test_file.content
    assert "let result = unsafe { sample_crate::shapes::peek(param_0) };" in test_file.content


def test_unit_strategy_uses_crate_paths_and_unit_file_names(tmp_path: Path) -> None:
    config = TestGenConfig(root=tmp_path)
    config.generation.strategy = "unit"
    builder = SuiteBuilder(config)
    analysis = _analysis(
        tmp_path,
        _function("area", returns="f64"),
        _function("version", returns="String", module_path=()),
    )

    files = {Path(test_file.path).name: test_file for test_file in builder.render(analysis)}

    assert set(files) == {"shapes_unit_tests.rs", "crate_unit_tests.rs"}
    shapes = files["shapes_unit_tests.rs"].content
    assert "fn test_area() {" in shapes
    assert "let result = crate::shapes::area();" in shapes
    assert "#[cfg(test)]" in shapes
    assert "let result = crate::version();" in files["crate_unit_tests.rs"].content


def test_templates_dir_shadows_packaged_templates(tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "integration.rs.j2").write_text(
        "// custom {{ module_label }}: {{ cases | length }}\n", encoding="utf-8"
    )
    config = TestGenConfig(root=tmp_path)
    config.generation.templates_dir = templates
    builder = SuiteBuilder(config)

    (test_file,) = builder.render(_analysis(tmp_path, _function("area")))

    assert test_file.content == "// custom sample_crate::shapes: 1\n"


def test_output_file_name() -> None:
    assert output_file_name(()) == "integration_tests.rs"
    assert output_file_name(("shapes",)) == "shapes_tests.rs"
    assert output_file_name(("shapes", "circle")) == "shapes_circle_tests.rs"
    assert output_file_name((), "unit") == "crate_unit_tests.rs"
    assert output_file_name(("shapes",), "unit") == "shapes_unit_tests.rs"


def test_raw_identifier_keeps_prefix_in_call_only(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    analysis = _analysis(tmp_path, _function("r#match", (("x", "i32"),), "i32"))

    (test_file,) = builder.render(analysis)

    assert "fn test_match_integration() {" in test_file.content
    assert "test_r#match" not in test_file.content
    assert "let _result = sample_crate::shapes::r#match(param_0);" in test_file.content


def test_async_unsafe_call_wraps_block_before_await(tmp_path: Path) -> None:
    builder = SuiteBuilder(TestGenConfig(root=tmp_path))
    analysis = _analysis(tmp_path, _function("go", is_async=True, is_unsafe=True))

    (test_file,) = builder.render(analysis)

    assert "    (unsafe { sample_crate::shapes::go() }).await;\n" in test_file.content


def test_unit_files_are_placed_outside_cargo_test_discovery(tmp_path: Path) -> None:
    config = TestGenConfig(root=tmp_path)
    config.generation.strategy = "unit"
    builder = SuiteBuilder(config)

    (test_file,) = builder.render(_analysis(tmp_path, _function("area", returns="f64")))

    assert test_file.path == str(tmp_path / "tests" / "unit" / "shapes_unit_tests.rs")


def test_output_file_path() -> None:
    assert output_file_path(("shapes",)) == Path("shapes_tests.rs")
    assert output_file_path(("shapes",), "unit") == Path("unit") / "shapes_unit_tests.rs"
    assert output_file_path((), "unit") == Path("unit") / "crate_unit_tests.rs"
