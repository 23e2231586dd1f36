"""Rendering of synthesized test cases into Rust source."""

from .builder import UNIT_SUBDIR, SuiteBuilder, output_file_name, output_file_path

__all__ = ["UNIT_SUBDIR", "SuiteBuilder", "output_file_name", "output_file_path"]
