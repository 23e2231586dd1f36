"""Tests for the analysis cache store."""

from __future__ import annotations

import json
from pathlib import Path

from testgen.models import ExtractionDiagnostic, FunctionDescriptor, ModuleAnalysis, ParameterDescriptor
from testgen.stores import AnalysisCache
from testgen.synthesis import classify


def _analysis() -> ModuleAnalysis:
    function = FunctionDescriptor(
        name="parse",
        module_path=("shapes",),
        parameters=(ParameterDescriptor(name="input", type=classify("&str")),),
        return_type=classify("Result<Vec<u8>, ParseError>"),
        is_async=True,
        file="src/shapes.rs",
    )
    diagnostic = ExtractionDiagnostic(
        module_path=("shapes",),
        file="src/shapes.rs",
        function="odd",
        message="free function declares a self parameter",
    )
    return ModuleAnalysis(
        module_path=("shapes",),
        file="src/shapes.rs",
        functions=[function],
        diagnostics=[diagnostic],
    )


def test_analysis_cache_round_trip(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache = AnalysisCache(cache_path)
    analysis = _analysis()
    cache.store("src/shapes.rs", signature="sig-1", fingerprint="fp-abc", analysis=analysis)
    cache.persist()

    loaded = AnalysisCache(cache_path)
    reuse = loaded.get("src/shapes.rs", signature="sig-1", fingerprint="fp-abc")

    assert reuse == analysis


def test_analysis_cache_invalidates_on_signature_or_fingerprint_change(tmp_path: Path) -> None:
    cache = AnalysisCache(tmp_path / "cache.json")
    cache.store("src/lib.rs", signature="sig-1", fingerprint="fp", analysis=_analysis())

    assert cache.get("src/lib.rs", signature="sig-1", fingerprint="fp") is not None
    assert cache.get("src/lib.rs", signature="sig-2", fingerprint="fp") is None
    assert cache.get("src/lib.rs", signature="sig-1", fingerprint="fp-changed") is None
    assert cache.get("src/other.rs", signature="sig-1", fingerprint="fp") is None


def test_analysis_cache_prune_removes_unused(tmp_path: Path) -> None:
    cache = AnalysisCache(tmp_path / "cache.json")
    cache.store("a", signature="s", fingerprint="fp", analysis=_analysis())
    cache.store("b", signature="s", fingerprint="fp", analysis=_analysis())

    cache.prune(["a"])
    cache.persist()

    reloaded = AnalysisCache(tmp_path / "cache.json")
    assert reloaded.get("a", signature="s", fingerprint="fp") is not None
    assert reloaded.get("b", signature="s", fingerprint="fp") is None


def test_analysis_cache_ignores_corrupt_or_outdated_files(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text("{not json", encoding="utf-8")
    assert AnalysisCache(cache_path).get("a", signature="s", fingerprint="fp") is None

    cache_path.write_text(json.dumps({"version": 0, "entries": {}}), encoding="utf-8")
    assert AnalysisCache(cache_path).get("a", signature="s", fingerprint="fp") is None


def test_analysis_cache_rejects_malformed_entries(tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    cache_path.write_text(
        json.dumps(
            {
                "version": 1,
                "entries": {
                    "a": {"signature": "s", "fingerprint": "fp", "analysis": {"functions": "nope"}},
                },
            }
        ),
        encoding="utf-8",
    )

    assert AnalysisCache(cache_path).get("a", signature="s", fingerprint="fp") is None


def test_persist_without_changes_does_not_create_file(tmp_path: Path) -> None:
    cache_path = tmp_path / "nested" / "cache.json"
    AnalysisCache(cache_path).persist()
    assert not cache_path.exists()
