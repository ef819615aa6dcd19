from __future__ import annotations

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def safe_copy_atomic(src: Path, dst: Path) -> None:
    ensure_directory(dst.parent)
    temp_path = dst.parent / f".{dst.name}.tmp"
    shutil.copy2(src, temp_path)
    os.replace(temp_path, dst)


def remove_if_exists(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def allocate_temp_file(suffix: str = "", dir: Path | None = None) -> Path:
    """Create an empty temporary file and return its path.

    Raises ``OSError`` when the file cannot be allocated.
    """
    fd, name = tempfile.mkstemp(suffix=suffix, prefix="findingaid-", dir=dir)
    os.close(fd)
    return Path(name)


@contextmanager
def scoped_temp_file(suffix: str = "", dir: Path | None = None) -> Iterator[Path]:
    path = allocate_temp_file(suffix=suffix, dir=dir)
    try:
        yield path
    finally:
        remove_if_exists(path)
