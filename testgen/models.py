"""Core data models shared across testgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

ModulePath = Tuple[str, ...]


class TypeCategory(str, Enum):
    """Semantic category that selects the literal and assertion rules."""

    BOOLEAN = "boolean"
    TEXT = "text"
    NUMERIC_INTEGER = "numeric_integer"
    NUMERIC_FLOAT = "numeric_float"
    FALLIBLE = "fallible"
    OPTIONAL = "optional"
    COLLECTION = "collection"
    OPAQUE = "opaque"

    @property
    def is_container(self) -> bool:
        return self in _CONTAINER_CATEGORIES

    @property
    def is_numeric(self) -> bool:
        return self in (TypeCategory.NUMERIC_INTEGER, TypeCategory.NUMERIC_FLOAT)


_CONTAINER_CATEGORIES = frozenset(
    {TypeCategory.FALLIBLE, TypeCategory.OPTIONAL, TypeCategory.COLLECTION}
)


@dataclass(frozen=True)
class TypeDescriptor:
    """Classification of a declared type."""

    category: TypeCategory
    name: str
    text: str
    path: str
    inner: Optional["TypeDescriptor"] = None
    is_reference: bool = False
    mutable: bool = False
    error_name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.inner is not None and not self.category.is_container:
            raise ValueError(f"{self.category.value} types cannot carry an inner type")

    @property
    def declared(self) -> str:
        """Return the type as declared, reference marker included."""
        if not self.is_reference:
            return self.text
        return f"&mut {self.text}" if self.mutable else f"&{self.text}"


@dataclass(frozen=True)
class ParameterDescriptor:
    """One declared parameter of a public function."""

    name: str
    type: TypeDescriptor


@dataclass(frozen=True)
class FunctionDescriptor:
    """One discovered public function."""

    name: str
    module_path: ModulePath
    parameters: Tuple[ParameterDescriptor, ...] = ()
    return_type: Optional[TypeDescriptor] = None
    is_async: bool = False
    is_unsafe: bool = False
    file: str = ""

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Function descriptors require a non-empty name")


@dataclass(frozen=True)
class ExtractionDiagnostic:
    """A function that was skipped during extraction, and why."""

    module_path: ModulePath
    file: str
    function: Optional[str]
    message: str

    def __str__(self) -> str:
        target = self.function or "<unnamed>"
        return f"{self.file}: skipped {target}: {self.message}"


@dataclass
class SourceFile:
    """A discovered source file and the module it defines."""

    path: str
    module_path: ModulePath
    size: int
    hash: str
    language: str = "rust"


@dataclass
class ProjectManifest:
    """Normalized view of the crate handed to analyzers."""

    root: str
    crate_name: str
    files: List[SourceFile]


@dataclass
class ModuleAnalysis:
    """Ordered extraction result for a single module."""

    module_path: ModulePath
    file: str
    functions: List[FunctionDescriptor] = field(default_factory=list)
    diagnostics: List[ExtractionDiagnostic] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectAnalysis:
    """Aggregate of every module's descriptors, in discovery order."""

    root: str
    crate_name: str
    modules: Dict[ModulePath, Tuple[FunctionDescriptor, ...]]
    diagnostics: Tuple[ExtractionDiagnostic, ...] = ()

    @classmethod
    def fold(
        cls, root: str, crate_name: str, results: Iterable[ModuleAnalysis]
    ) -> "ProjectAnalysis":
        """Fold per-module results into a single analysis.

        Two files mapping to the same module path (``a.rs`` and ``a/mod.rs``)
        are concatenated in the order they arrive.
        """
        modules: Dict[ModulePath, List[FunctionDescriptor]] = {}
        diagnostics: List[ExtractionDiagnostic] = []
        for result in results:
            modules.setdefault(result.module_path, []).extend(result.functions)
            diagnostics.extend(result.diagnostics)
        return cls(
            root=root,
            crate_name=crate_name,
            modules={path: tuple(functions) for path, functions in modules.items()},
            diagnostics=tuple(diagnostics),
        )

    def functions(self) -> List[FunctionDescriptor]:
        return [function for functions in self.modules.values() for function in functions]

    @property
    def function_count(self) -> int:
        return sum(len(functions) for functions in self.modules.values())


@dataclass(frozen=True)
class TestCase:
    """Synthesized call skeleton for one function."""

    __test__ = False

    function: FunctionDescriptor
    test_name: str
    call_path: str
    arguments: Tuple[str, ...]
    assertion: Optional[str]


@dataclass
class TestFile:
    """Generated test text and where it belongs on disk."""

    __test__ = False

    path: str
    module_path: ModulePath
    content: str
    cases: int = 0


__all__ = [
    "ExtractionDiagnostic",
    "FunctionDescriptor",
    "ModuleAnalysis",
    "ModulePath",
    "ParameterDescriptor",
    "ProjectAnalysis",
    "ProjectManifest",
    "SourceFile",
    "TestCase",
    "TestFile",
    "TypeCategory",
    "TypeDescriptor",
]
