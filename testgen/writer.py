"""Writes generated test files to disk."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, List

from .logging import get_logger
from .models import TestFile

logger = get_logger("writer")


def write_test_file(test_file: TestFile) -> Path:
    """Atomically write one test file, creating parent directories as needed.

    The content lands in a temporary file beside the target and is moved into
    place, so readers never observe a partially written file.
    """
    path = Path(test_file.path)
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with handle:
            handle.write(test_file.content)
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise
    logger.debug("Wrote %s (%d cases)", path, test_file.cases)
    return path


def write_test_files(test_files: Iterable[TestFile]) -> List[Path]:
    return [write_test_file(test_file) for test_file in test_files]


__all__ = ["write_test_file", "write_test_files"]
