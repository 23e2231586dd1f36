"""Assembles synthesized test cases into Rust test files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from jinja2 import Environment, FileSystemLoader

from ..config import TestGenConfig
from ..logging import get_logger
from ..models import FunctionDescriptor, ModulePath, ProjectAnalysis, TestCase, TestFile
from ..synthesis import synthesize_assertion, synthesize_literal

_TEMPLATES = {
    "integration": "integration.rs.j2",
    "unit": "unit.rs.j2",
}

UNIT_SUBDIR = "unit"

logger = get_logger("rendering")


@dataclass(frozen=True)
class _Binding:
    name: str
    literal: str


@dataclass(frozen=True)
class _RenderedCase:
    test_name: str
    attribute: str
    is_async: bool
    bindings: Sequence[_Binding]
    call: str
    binds_result: bool
    assertion: Optional[str]
    signature: str


class SuiteBuilder:
    """Turns a project analysis into test cases and rendered test files."""

    def __init__(self, config: TestGenConfig, templates_dir: Path | None = None) -> None:
        self.config = config
        self.strategy = config.generation.strategy
        self.templates_dir = templates_dir or config.generation.templates_dir
        self._env = self._create_env(self.templates_dir)

    def build_case(
        self,
        function: FunctionDescriptor,
        crate_name: str,
        used_names: Optional[Set[str]] = None,
    ) -> TestCase:
        """Synthesize the call path, ordered arguments and assertion for one function."""
        literal_overrides = self.config.types.mappings
        assertion_overrides = self.config.generation.custom_assertions
        arguments = tuple(
            synthesize_literal(parameter.type, literal_overrides)
            for parameter in function.parameters
        )
        return TestCase(
            function=function,
            test_name=self._test_name(function.name, used_names),
            call_path=self._call_path(function, crate_name),
            arguments=arguments,
            assertion=synthesize_assertion(function.return_type, assertion_overrides),
        )

    def build_cases(self, analysis: ProjectAnalysis) -> Dict[ModulePath, List[TestCase]]:
        """Return test cases per module, skipping functions matched by skip prefixes."""
        cases: Dict[ModulePath, List[TestCase]] = {}
        for module_path, functions in analysis.modules.items():
            used_names: Set[str] = set()
            module_cases: List[TestCase] = []
            for function in functions:
                if self.config.should_skip_function(function.name):
                    logger.debug("Skipping %s (matches skip_functions)", function.name)
                    continue
                module_cases.append(self.build_case(function, analysis.crate_name, used_names))
            if module_cases:
                cases[module_path] = module_cases
        return cases

    def render(self, analysis: ProjectAnalysis) -> List[TestFile]:
        """Render one test file per module that has at least one case."""
        output_root = Path(analysis.root) / self.config.generation.output_dir
        files: List[TestFile] = []
        for module_path, cases in self.build_cases(analysis).items():
            content = self.render_module(module_path, cases, analysis.crate_name)
            path = output_root / output_file_path(module_path, self.strategy)
            files.append(
                TestFile(path=str(path), module_path=module_path, content=content, cases=len(cases))
            )
        return files

    def render_module(self, module_path: ModulePath, cases: Sequence[TestCase], crate_name: str) -> str:
        template = self._env.get_template(_TEMPLATES[self.strategy])
        module_label = "::".join((crate_name, *module_path))
        return template.render(
            crate_name=crate_name,
            module_label=module_label,
            module_path=module_path,
            cases=[self._render_case(case) for case in cases],
            uses_tokio=any(case.function.is_async for case in cases),
        )

    def _render_case(self, case: TestCase) -> _RenderedCase:
        function = case.function
        bindings = [
            _Binding(name=f"param_{index}", literal=literal)
            for index, literal in enumerate(case.arguments)
        ]
        call = f"{case.call_path}({', '.join(binding.name for binding in bindings)})"
        if function.is_unsafe:
            call = f"unsafe {{ {call} }}"
        if function.is_async:
            # A statement-leading block cannot take a method-call suffix.
            call = f"({call}).await" if function.is_unsafe else f"{call}.await"
        return _RenderedCase(
            test_name=case.test_name,
            attribute="#[tokio::test]" if function.is_async else "#[test]",
            is_async=function.is_async,
            bindings=bindings,
            call=call,
            binds_result=function.return_type is not None,
            assertion=case.assertion,
            signature=_describe_signature(function),
        )

    def _call_path(self, function: FunctionDescriptor, crate_name: str) -> str:
        head = "crate" if self.strategy == "unit" else crate_name
        return "::".join((head, *function.module_path, function.name))

    def _test_name(self, function_name: str, used_names: Optional[Set[str]]) -> str:
        stem = function_name.removeprefix("r#")
        base = f"test_{stem}" if self.strategy == "unit" else f"test_{stem}_integration"
        if used_names is None:
            return base
        name = base
        suffix = 2
        while name in used_names:
            name = f"{base}_{suffix}"
            suffix += 1
        used_names.add(name)
        return name

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )


def output_file_name(module_path: ModulePath, strategy: str = "integration") -> str:
    """Return the output file name for a module's generated tests."""
    suffix = "unit_tests" if strategy == "unit" else "tests"
    if not module_path:
        return "crate_unit_tests.rs" if strategy == "unit" else "integration_tests.rs"
    return f"{'_'.join(module_path)}_{suffix}.rs"


def output_file_path(module_path: ModulePath, strategy: str = "integration") -> Path:
    """Return the file location relative to ``generation.output_dir``.

    Unit files live under ``unit/`` because Cargo builds every top-level
    ``tests/*.rs`` file as its own crate, where ``crate::`` paths break.
    """
    name = output_file_name(module_path, strategy)
    if strategy == "unit":
        return Path(UNIT_SUBDIR) / name
    return Path(name)


def _describe_signature(function: FunctionDescriptor) -> str:
    parameters = ", ".join(
        f"{parameter.name}: {parameter.type.declared}" for parameter in function.parameters
    )
    signature = f"{function.name}({parameters})"
    if function.return_type is not None:
        signature += f" -> {function.return_type.declared}"
    return signature


__all__ = ["UNIT_SUBDIR", "SuiteBuilder", "output_file_name", "output_file_path"]
