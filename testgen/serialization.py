"""Plain-dict conversion of descriptors for caching and JSON output."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from .models import (
    ExtractionDiagnostic,
    FunctionDescriptor,
    ModuleAnalysis,
    ParameterDescriptor,
    ProjectAnalysis,
    TypeCategory,
    TypeDescriptor,
)


def type_to_dict(descriptor: TypeDescriptor) -> Dict[str, Any]:
    data = asdict(descriptor)
    data["category"] = descriptor.category.value
    if descriptor.inner is not None:
        data["inner"] = type_to_dict(descriptor.inner)
    return data


def function_to_dict(function: FunctionDescriptor) -> Dict[str, Any]:
    return {
        "name": function.name,
        "module_path": list(function.module_path),
        "parameters": [
            {"name": parameter.name, "type": type_to_dict(parameter.type)}
            for parameter in function.parameters
        ],
        "return_type": type_to_dict(function.return_type) if function.return_type else None,
        "is_async": function.is_async,
        "is_unsafe": function.is_unsafe,
        "file": function.file,
    }


def diagnostic_to_dict(diagnostic: ExtractionDiagnostic) -> Dict[str, Any]:
    data = asdict(diagnostic)
    data["module_path"] = list(diagnostic.module_path)
    return data


def module_analysis_to_dict(result: ModuleAnalysis) -> Dict[str, Any]:
    return {
        "module_path": list(result.module_path),
        "file": result.file,
        "functions": [function_to_dict(function) for function in result.functions],
        "diagnostics": [diagnostic_to_dict(diagnostic) for diagnostic in result.diagnostics],
    }


def project_analysis_to_dict(analysis: ProjectAnalysis) -> Dict[str, Any]:
    return {
        "root": analysis.root,
        "crate_name": analysis.crate_name,
        "modules": [
            {
                "module_path": list(module_path),
                "functions": [function_to_dict(function) for function in functions],
            }
            for module_path, functions in analysis.modules.items()
        ],
        "diagnostics": [diagnostic_to_dict(diagnostic) for diagnostic in analysis.diagnostics],
    }


def type_from_dict(payload: object) -> Optional[TypeDescriptor]:
    if not isinstance(payload, dict):
        return None
    try:
        category = TypeCategory(payload.get("category"))
    except ValueError:
        return None
    name = payload.get("name")
    text = payload.get("text")
    path = payload.get("path")
    if not isinstance(name, str) or not isinstance(text, str) or not isinstance(path, str):
        return None
    inner = None
    if payload.get("inner") is not None:
        inner = type_from_dict(payload["inner"])
        if inner is None:
            return None
    error_name = payload.get("error_name")
    try:
        return TypeDescriptor(
            category=category,
            name=name,
            text=text,
            path=path,
            inner=inner,
            is_reference=bool(payload.get("is_reference", False)),
            mutable=bool(payload.get("mutable", False)),
            error_name=error_name if isinstance(error_name, str) else None,
        )
    except ValueError:
        return None


def function_from_dict(payload: object) -> Optional[FunctionDescriptor]:
    if not isinstance(payload, dict):
        return None
    name = payload.get("name")
    module_path = payload.get("module_path")
    raw_parameters = payload.get("parameters")
    if not isinstance(name, str) or not name:
        return None
    if not isinstance(module_path, list) or not all(isinstance(part, str) for part in module_path):
        return None
    if not isinstance(raw_parameters, list):
        return None

    parameters: List[ParameterDescriptor] = []
    for raw in raw_parameters:
        if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
            return None
        parameter_type = type_from_dict(raw.get("type"))
        if parameter_type is None:
            return None
        parameters.append(ParameterDescriptor(name=raw["name"], type=parameter_type))

    return_type = None
    if payload.get("return_type") is not None:
        return_type = type_from_dict(payload["return_type"])
        if return_type is None:
            return None

    file = payload.get("file")
    return FunctionDescriptor(
        name=name,
        module_path=tuple(module_path),
        parameters=tuple(parameters),
        return_type=return_type,
        is_async=bool(payload.get("is_async", False)),
        is_unsafe=bool(payload.get("is_unsafe", False)),
        file=file if isinstance(file, str) else "",
    )


def diagnostic_from_dict(payload: object) -> Optional[ExtractionDiagnostic]:
    if not isinstance(payload, dict):
        return None
    module_path = payload.get("module_path")
    file = payload.get("file")
    function = payload.get("function")
    message = payload.get("message")
    if not isinstance(module_path, list) or not isinstance(file, str) or not isinstance(message, str):
        return None
    return ExtractionDiagnostic(
        module_path=tuple(str(part) for part in module_path),
        file=file,
        function=function if isinstance(function, str) else None,
        message=message,
    )


def module_analysis_from_dict(payload: object) -> Optional[ModuleAnalysis]:
    if not isinstance(payload, dict):
        return None
    module_path = payload.get("module_path")
    file = payload.get("file")
    raw_functions = payload.get("functions")
    raw_diagnostics = payload.get("diagnostics", [])
    if not isinstance(module_path, list) or not isinstance(file, str):
        return None
    if not isinstance(raw_functions, list) or not isinstance(raw_diagnostics, list):
        return None

    functions: List[FunctionDescriptor] = []
    for raw in raw_functions:
        function = function_from_dict(raw)
        if function is None:
            return None
        functions.append(function)
    diagnostics = [
        diagnostic
        for diagnostic in (diagnostic_from_dict(raw) for raw in raw_diagnostics)
        if diagnostic is not None
    ]
    return ModuleAnalysis(
        module_path=tuple(str(part) for part in module_path),
        file=file,
        functions=functions,
        diagnostics=diagnostics,
    )


__all__ = [
    "function_from_dict",
    "function_to_dict",
    "module_analysis_from_dict",
    "module_analysis_to_dict",
    "project_analysis_to_dict",
    "type_from_dict",
    "type_to_dict",
]
