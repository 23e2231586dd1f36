"""Base classes for analyzer plugins."""

from abc import ABC, abstractmethod

from ..models import ModuleAnalysis, SourceFile
from ..parsing import ParsedModule


class Analyzer(ABC):
    """Contract for analyzers that extract public function descriptors from a module."""

    language: str = ""
    cache_version: str = "1"

    @abstractmethod
    def supports(self, source: SourceFile) -> bool:
        """Return True when this analyzer understands the source file."""

    @abstractmethod
    def analyze(self, module: ParsedModule) -> ModuleAnalysis:
        """Produce the ordered descriptors of one parsed module."""
