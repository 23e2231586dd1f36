"""Exception hierarchy for testgen."""

from __future__ import annotations


class TestGenError(RuntimeError):
    """Base class for errors raised by testgen."""

    __test__ = False


class ConfigError(TestGenError):
    """Raised when the configuration file cannot be parsed."""


class SourceParseError(TestGenError):
    """Raised when a source file cannot be read or decoded for parsing."""


class ExtractionError(TestGenError):
    """Raised for a single function whose signature cannot be extracted."""


class GenerationTimeoutError(TestGenError):
    """Raised when a run exceeds the configured deadline."""


__all__ = [
    "ConfigError",
    "ExtractionError",
    "GenerationTimeoutError",
    "SourceParseError",
    "TestGenError",
]
