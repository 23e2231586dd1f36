"""Signature extraction for public Rust free functions."""

from __future__ import annotations

import re
from typing import List, Optional

from tree_sitter import Node

from .base import Analyzer
from ..errors import ExtractionError
from ..logging import get_logger
from ..models import (
    ExtractionDiagnostic,
    FunctionDescriptor,
    ModuleAnalysis,
    ParameterDescriptor,
    SourceFile,
    TypeDescriptor,
)
from ..parsing import ParsedModule
from ..synthesis.classifier import classify, normalise_type_text

_COMMENT_TYPES = {"line_comment", "block_comment"}
_BROKEN_PUB_FN_RE = re.compile(
    r"\bpub\s+(?:(?:async|const|unsafe|extern\s*(?:\"[^\"]*\")?)\s+)*fn\s+([A-Za-z_]\w*)"
)

logger = get_logger("analyzers.rust")


class RustAnalyzer(Analyzer):
    """Extracts public free functions declared at a module's top level."""

    language = "rust"
    cache_version = "1"

    def supports(self, source: SourceFile) -> bool:
        return source.path.endswith(".rs")

    def analyze(self, module: ParsedModule) -> ModuleAnalysis:
        source = module.source
        result = ModuleAnalysis(module_path=source.module_path, file=source.path)
        for item in module.root_node.children:
            if item.type == "ERROR":
                self._report_broken_item(item, module, result)
                continue
            if item.type != "function_item":
                continue
            name = self._function_name(item, module)
            try:
                descriptor = self._extract(item, module)
            except ExtractionError as exc:
                diagnostic = ExtractionDiagnostic(
                    module_path=source.module_path,
                    file=source.path,
                    function=name,
                    message=str(exc),
                )
                logger.warning("%s", diagnostic)
                result.diagnostics.append(diagnostic)
                continue
            if descriptor is not None:
                result.functions.append(descriptor)
        return result

    def _extract(self, item: Node, module: ParsedModule) -> Optional[FunctionDescriptor]:
        if not self._is_public(item, module):
            return None

        name = self._function_name(item, module)
        if not name:
            raise ExtractionError("function has no name")

        signature_nodes = [
            item.child_by_field_name(field)
            for field in ("name", "type_parameters", "parameters", "return_type")
        ]
        if any(node is not None and (node.has_error or node.is_missing) for node in signature_nodes):
            raise ExtractionError("signature contains syntax errors")

        parameters_node = item.child_by_field_name("parameters")
        if parameters_node is None:
            raise ExtractionError("signature has no parameter list")

        is_async, is_unsafe = self._modifiers(item)
        return FunctionDescriptor(
            name=name,
            module_path=module.source.module_path,
            parameters=tuple(self._parameters(parameters_node, module)),
            return_type=self._return_type(item, module),
            is_async=is_async,
            is_unsafe=is_unsafe,
            file=module.source.path,
        )

    @staticmethod
    def _function_name(item: Node, module: ParsedModule) -> Optional[str]:
        name_node = item.child_by_field_name("name")
        if name_node is None:
            return None
        return module.text(name_node) or None

    @staticmethod
    def _is_public(item: Node, module: ParsedModule) -> bool:
        for child in item.children:
            if child.type == "visibility_modifier":
                return re.sub(r"\s+", "", module.text(child)) == "pub"
        return False

    @staticmethod
    def _modifiers(item: Node) -> tuple[bool, bool]:
        is_async = False
        is_unsafe = False
        for child in item.children:
            if child.type != "function_modifiers":
                continue
            for modifier in child.children:
                if modifier.type == "async":
                    is_async = True
                elif modifier.type == "unsafe":
                    is_unsafe = True
        return is_async, is_unsafe

    def _parameters(self, node: Node, module: ParsedModule) -> List[ParameterDescriptor]:
        parameters: List[ParameterDescriptor] = []
        for child in node.named_children:
            if child.type in _COMMENT_TYPES or child.type == "attribute_item":
                continue
            if child.type == "self_parameter":
                raise ExtractionError("free function declares a self parameter")
            if child.type == "variadic_parameter":
                raise ExtractionError("variadic parameters are not supported")
            if child.type != "parameter":
                raise ExtractionError(f"unsupported parameter syntax '{module.text(child)}'")
            type_node = child.child_by_field_name("type")
            if type_node is None:
                raise ExtractionError(f"parameter '{module.text(child)}' has no declared type")
            pattern_node = child.child_by_field_name("pattern")
            name = self._parameter_name(module.text(pattern_node) if pattern_node else "_")
            parameters.append(
                ParameterDescriptor(name=name, type=classify(module.text(type_node)))
            )
        return parameters

    @staticmethod
    def _parameter_name(pattern: str) -> str:
        name = normalise_type_text(pattern)
        if name.startswith("mut "):
            name = name[len("mut ") :]
        return name or "_"

    @staticmethod
    def _return_type(item: Node, module: ParsedModule) -> Optional[TypeDescriptor]:
        node = item.child_by_field_name("return_type")
        if node is None:
            return None
        descriptor = classify(module.text(node))
        if descriptor.text == "()" and not descriptor.is_reference:
            return None
        return descriptor

    @staticmethod
    def _report_broken_item(item: Node, module: ParsedModule, result: ModuleAnalysis) -> None:
        for match in _BROKEN_PUB_FN_RE.finditer(module.text(item)):
            diagnostic = ExtractionDiagnostic(
                module_path=module.source.module_path,
                file=module.source.path,
                function=match.group(1),
                message="item could not be parsed",
            )
            logger.warning("%s", diagnostic)
            result.diagnostics.append(diagnostic)


__all__ = ["RustAnalyzer"]
