"""Crate scanning and module path derivation."""

from __future__ import annotations

import hashlib
import os
import re
import tomllib
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from .config import TestGenConfig
from .logging import get_logger
from .models import ModulePath, ProjectManifest, SourceFile

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    ".testgen",
    "target",
    "node_modules",
}

# Binary targets are not importable from integration tests.
_BINARY_ENTRY = "main.rs"
_BINARY_DIR = "bin"

_IDENT_RE = re.compile(r"^[A-Za-z_]\w*$")

logger = get_logger("scanner")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    if not path.exists():
        return []

    rules: List[IgnoreRule] = []
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


def _matches_skip_pattern(rel_path: str, is_dir: bool, patterns: Sequence[str]) -> bool:
    candidate = f"{rel_path}/" if is_dir else rel_path
    for pattern in patterns:
        if fnmatchcase(candidate, pattern) or fnmatchcase(f"/{candidate}", pattern):
            return True
    return False


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def module_path_for(relative_to_source_root: str) -> Optional[ModulePath]:
    """Derive the module path of a file relative to the crate's source root.

    ``lib.rs`` is the crate root, ``a/mod.rs`` is module ``a`` and ``a/b.rs``
    is module ``a::b``. Returns None for files that cannot name a module.
    """
    parts = [part for part in relative_to_source_root.replace("\\", "/").split("/") if part]
    if not parts or not parts[-1].endswith(".rs"):
        return None
    parts[-1] = parts[-1][: -len(".rs")]
    if parts == ["lib"]:
        return ()
    if parts[-1] == "mod":
        parts = parts[:-1]
    if not parts or not all(_IDENT_RE.match(part) for part in parts):
        return None
    return tuple(parts)


def find_project_root(start: Path) -> Path:
    """Return the nearest directory at or above ``start`` holding a Cargo.toml.

    Falls back to ``start`` itself when no manifest is found.
    """
    start_path = Path(start).expanduser().resolve()
    if not start_path.exists():
        raise FileNotFoundError(f"Project path not found: {start}")
    current = start_path if start_path.is_dir() else start_path.parent
    for candidate in (current, *current.parents):
        if (candidate / "Cargo.toml").is_file():
            return candidate
    logger.debug("No Cargo.toml found above %s; using it as the crate root", start_path)
    return current


def read_crate_name(root: Path, override: Optional[str] = None) -> str:
    """Resolve the crate's import name from config, Cargo.toml, or the directory."""
    if override:
        return _normalise_crate_name(override)
    manifest = root / "Cargo.toml"
    if manifest.is_file():
        try:
            data = tomllib.loads(manifest.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.warning("Could not read %s: %s", manifest, exc)
        else:
            for table in ("lib", "package"):
                section = data.get(table)
                if isinstance(section, dict) and isinstance(section.get("name"), str):
                    return _normalise_crate_name(section["name"])
    return _normalise_crate_name(root.name or "crate")


def _normalise_crate_name(name: str) -> str:
    cleaned = re.sub(r"\W", "_", name.strip().replace("-", "_"))
    return cleaned or "crate"


class ProjectScanner:
    """Walks a crate's source tree to produce a normalized manifest."""

    def scan(self, root: str | Path, config: Optional[TestGenConfig] = None) -> ProjectManifest:
        """Return a manifest of the crate's library source files in sorted order."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        config = config or TestGenConfig(root=root_path)
        rules: List[IgnoreRule] = []
        if config.filesystem.respect_gitignore:
            rules = _parse_gitignore(root_path / ".gitignore")
        output_dir = Path(config.generation.output_dir).as_posix().strip("/")

        source_root = root_path / "src"
        if not source_root.is_dir():
            source_root = root_path

        files: List[SourceFile] = []
        for path in self._iter_files(root_path, source_root, rules, config.filesystem.skip_patterns, output_dir):
            rel_to_source = path.relative_to(source_root).as_posix()
            module_path = module_path_for(rel_to_source)
            if module_path is None:
                logger.debug("Skipping %s: not a module file", rel_to_source)
                continue
            files.append(
                SourceFile(
                    path=path.relative_to(root_path).as_posix(),
                    module_path=module_path,
                    size=path.stat().st_size,
                    hash=_hash_file(path),
                )
            )

        crate_name = read_crate_name(root_path, config.project.name)
        logger.debug("Discovered %d source files in crate %s", len(files), crate_name)
        return ProjectManifest(root=str(root_path), crate_name=crate_name, files=files)

    @staticmethod
    def _iter_files(
        root: Path,
        source_root: Path,
        rules: Sequence[IgnoreRule],
        skip_patterns: Sequence[str],
        output_dir: str,
    ) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(source_root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""
            at_source_root = current_dir == source_root

            kept = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS or (at_source_root and name == _BINARY_DIR):
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if rel_path == output_dir:
                    continue
                if _should_ignore(rel_path, True, rules) or _matches_skip_pattern(rel_path, True, skip_patterns):
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in sorted(filenames):
                if not filename.endswith(".rs"):
                    continue
                if at_source_root and filename == _BINARY_ENTRY:
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules) or _matches_skip_pattern(rel_path, False, skip_patterns):
                    continue
                yield current_dir / filename


__all__ = [
    "IgnoreRule",
    "ProjectScanner",
    "find_project_root",
    "module_path_for",
    "read_crate_name",
]
