"""Persistent cache for per-module analysis results."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..models import ModuleAnalysis
from ..serialization import module_analysis_from_dict, module_analysis_to_dict

_CACHE_VERSION = 1


class AnalysisCache:
    """Stores module analyses keyed by source path and content fingerprint."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def get(self, key: str, *, signature: str, fingerprint: str) -> Optional[ModuleAnalysis]:
        entry = self._entries.get(key)
        if not entry:
            return None
        if entry.get("signature") != signature:
            return None
        if entry.get("fingerprint") != fingerprint:
            return None
        return module_analysis_from_dict(entry.get("analysis"))

    def store(
        self,
        key: str,
        *,
        signature: str,
        fingerprint: str,
        analysis: ModuleAnalysis,
    ) -> None:
        self._entries[key] = {
            "signature": signature,
            "fingerprint": fingerprint,
            "analysis": module_analysis_to_dict(analysis),
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> None:
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        if removed:
            for key in removed:
                self._entries.pop(key, None)
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        valid_entries: Dict[str, Dict[str, object]] = {}
        for key, raw in entries.items():
            if not isinstance(key, str) or not isinstance(raw, dict):
                continue
            if "signature" not in raw or "fingerprint" not in raw or "analysis" not in raw:
                continue
            valid_entries[key] = raw
        self._entries = valid_entries
        self._dirty = False


__all__ = ["AnalysisCache"]
