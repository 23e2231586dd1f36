"""Pipeline orchestration for analyze/generate flows."""

from __future__ import annotations

import hashlib
import inspect
import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .analyzers import Analyzer, analyzer_for, discover_analyzers
from .config import TestGenConfig, apply_overrides, load_config
from .errors import GenerationTimeoutError
from .logging import get_logger
from .models import (
    ExtractionDiagnostic,
    ModuleAnalysis,
    ProjectAnalysis,
    ProjectManifest,
    SourceFile,
    TestFile,
)
from .parsing import RustParser
from .rendering import SuiteBuilder
from .scanner import ProjectScanner, find_project_root
from .stores import AnalysisCache
from .writer import write_test_files

_CACHE_PATH = Path(".testgen") / "analysis_cache.json"


@dataclass
class GenerationOutcome:
    """Result of a generate run."""

    analysis: ProjectAnalysis
    files: List[TestFile]
    written: List[Path]
    dry_run: bool

    @property
    def diagnostics(self) -> Tuple[ExtractionDiagnostic, ...]:
        return self.analysis.diagnostics

    @property
    def case_count(self) -> int:
        return sum(test_file.cases for test_file in self.files)


class _Deadline:
    def __init__(self, seconds: Optional[float], clock: Callable[[], float]) -> None:
        self._seconds = seconds
        self._clock = clock
        self._expires = clock() + seconds if seconds else None

    def remaining(self) -> Optional[float]:
        if self._expires is None:
            return None
        return max(0.0, self._expires - self._clock())

    def check(self) -> None:
        if self._expires is not None and self._clock() >= self._expires:
            raise GenerationTimeoutError(f"Generation exceeded the {self._seconds:g}s deadline")


class _Progress:
    """Logs one INFO line per module as analysis completes, from any worker."""

    def __init__(self, logger: logging.Logger, total: int) -> None:
        self._logger = logger
        self._total = total
        self._done = 0
        self._lock = threading.Lock()

    def advance(self, source: SourceFile, result: ModuleAnalysis, *, cached: bool = False) -> None:
        with self._lock:
            self._done += 1
            done = self._done
        self._logger.info(
            "[%d/%d] %s: %d public functions%s",
            done,
            self._total,
            source.path,
            len(result.functions),
            " (cached)" if cached else "",
        )


class Orchestrator:
    """Coordinates discovery, extraction, synthesis and output for a crate."""

    def __init__(
        self,
        scanner: ProjectScanner | None = None,
        parser: RustParser | None = None,
        analyzers: Optional[Iterable[Analyzer]] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.scanner = scanner or ProjectScanner()
        self.parser = parser or RustParser()
        self._analyzer_overrides = list(analyzers) if analyzers is not None else None
        self._clock = clock
        self.logger = get_logger("orchestrator")

    def load_config(
        self,
        path: str | Path,
        *,
        output_dir: Optional[str] = None,
        strategy: Optional[str] = None,
        parallel: Optional[bool] = None,
    ) -> TestGenConfig:
        """Resolve the crate root above ``path`` and load its configuration."""
        root = find_project_root(Path(path))
        config = load_config(root)
        return apply_overrides(config, output_dir=output_dir, strategy=strategy, parallel=parallel)

    def run_analyze(
        self,
        path: str | Path,
        *,
        parallel: Optional[bool] = None,
        config: TestGenConfig | None = None,
    ) -> ProjectAnalysis:
        """Extract the public function descriptors of every module in the crate."""
        config = config or self.load_config(path, parallel=parallel)
        deadline = _Deadline(config.generation.timeout_seconds, self._clock)
        return self._analyze(config, deadline)

    def run_generate(
        self,
        path: str | Path,
        *,
        dry_run: bool = False,
        output_dir: Optional[str] = None,
        strategy: Optional[str] = None,
        parallel: Optional[bool] = None,
        config: TestGenConfig | None = None,
    ) -> GenerationOutcome:
        """Generate test files for the crate, writing them unless ``dry_run``."""
        if config is None:
            config = self.load_config(
                path, output_dir=output_dir, strategy=strategy, parallel=parallel
            )
        deadline = _Deadline(config.generation.timeout_seconds, self._clock)
        analysis = self._analyze(config, deadline)

        builder = SuiteBuilder(config)
        files = builder.render(analysis)
        deadline.check()

        written: List[Path] = []
        if dry_run:
            self.logger.info("Dry run: %d test files not written", len(files))
        else:
            written = write_test_files(files)
            self.logger.info(
                "Wrote %d test files under %s",
                len(written),
                Path(analysis.root) / config.generation.output_dir,
            )
        return GenerationOutcome(analysis=analysis, files=files, written=written, dry_run=dry_run)

    # ------------------------------------------------------------------
    # Internal helpers

    def _analyze(self, config: TestGenConfig, deadline: _Deadline) -> ProjectAnalysis:
        root = config.root
        self.logger.info("Analyzing crate at %s", root)
        manifest = self.scanner.scan(root, config)
        self.logger.debug("Scanner discovered %d source files", len(manifest.files))

        analyzers = self._select_analyzers()
        cache = self._load_cache(Path(manifest.root)) if config.performance.caching_enabled else None

        results: Dict[int, ModuleAnalysis] = {}
        pending: List[Tuple[int, SourceFile, Analyzer]] = []
        used_keys: List[str] = []
        selected: List[Tuple[int, SourceFile, Analyzer]] = []
        for index, source in enumerate(manifest.files):
            analyzer = analyzer_for(source, analyzers)
            if analyzer is None:
                self.logger.debug("No analyzer supports %s", source.path)
                continue
            selected.append((index, source, analyzer))

        progress = _Progress(self.logger, len(selected))
        for index, source, analyzer in selected:
            if cache is not None:
                used_keys.append(source.path)
                cached = cache.get(
                    source.path,
                    signature=self._analyzer_signature(analyzer),
                    fingerprint=source.hash,
                )
                if cached is not None:
                    results[index] = cached
                    progress.advance(source, cached, cached=True)
                    continue
            pending.append((index, source, analyzer))

        if config.performance.parallel and len(pending) > 1:
            computed = self._run_parallel(
                manifest, pending, config.performance.max_workers, deadline, progress
            )
        else:
            computed = self._run_sequential(manifest, pending, deadline, progress)

        for index, source, analyzer in pending:
            result = computed[index]
            results[index] = result
            if cache is not None:
                cache.store(
                    source.path,
                    signature=self._analyzer_signature(analyzer),
                    fingerprint=source.hash,
                    analysis=result,
                )
        if cache is not None:
            cache.prune(used_keys)
            cache.persist()

        analysis = ProjectAnalysis.fold(
            manifest.root,
            manifest.crate_name,
            (results[index] for index in sorted(results)),
        )
        self.logger.info(
            "Extracted %d public functions from %d modules (%d skipped)",
            analysis.function_count,
            len(analysis.modules),
            len(analysis.diagnostics),
        )
        return analysis

    def _analyze_source(
        self,
        manifest: ProjectManifest,
        source: SourceFile,
        analyzer: Analyzer,
        progress: _Progress,
    ) -> ModuleAnalysis:
        module = self.parser.parse_file(Path(manifest.root), source)
        result = analyzer.analyze(module)
        progress.advance(source, result)
        return result

    def _run_sequential(
        self,
        manifest: ProjectManifest,
        pending: Sequence[Tuple[int, SourceFile, Analyzer]],
        deadline: _Deadline,
        progress: _Progress,
    ) -> Dict[int, ModuleAnalysis]:
        computed: Dict[int, ModuleAnalysis] = {}
        for index, source, analyzer in pending:
            deadline.check()
            computed[index] = self._analyze_source(manifest, source, analyzer, progress)
        deadline.check()
        return computed

    def _run_parallel(
        self,
        manifest: ProjectManifest,
        pending: Sequence[Tuple[int, SourceFile, Analyzer]],
        max_workers: Optional[int],
        deadline: _Deadline,
        progress: _Progress,
    ) -> Dict[int, ModuleAnalysis]:
        executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="testgen-analyze")
        futures: Dict[Future[ModuleAnalysis], int] = {}
        try:
            for index, source, analyzer in pending:
                future = executor.submit(self._analyze_source, manifest, source, analyzer, progress)
                futures[future] = index
            done, not_done = wait(futures, timeout=deadline.remaining(), return_when=FIRST_EXCEPTION)
            for future in done:
                # Re-raise the first worker failure unchanged.
                future.result()
            if not_done:
                deadline.check()
                # Wait returned early only because of an exception or the deadline.
                raise GenerationTimeoutError("Generation deadline exceeded")
            return {futures[future]: future.result() for future in done}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _select_analyzers(self) -> List[Analyzer]:
        if self._analyzer_overrides is not None:
            return list(self._analyzer_overrides)
        return discover_analyzers()

    @staticmethod
    def _load_cache(root: Path) -> AnalysisCache:
        return AnalysisCache(root / _CACHE_PATH)

    @staticmethod
    def _analyzer_signature(analyzer: Analyzer) -> str:
        module = analyzer.__class__.__module__
        qualname = analyzer.__class__.__qualname__
        cache_version = getattr(analyzer, "cache_version", None) or "1"
        try:
            source = inspect.getsource(analyzer.__class__)
        except (OSError, TypeError):
            source_hash = f"{module}:{qualname}"
        else:
            source_hash = hashlib.sha256(source.encode("utf-8")).hexdigest()
        return f"{module}.{qualname}:{cache_version}:{source_hash}"


__all__ = ["GenerationOutcome", "Orchestrator"]
