"""File-system helpers shared by the installation stages."""
from __future__ import annotations

import fnmatch
import logging
import os
import shutil
import zipfile
from pathlib import Path
from typing import Dict, List, Sequence

logger = logging.getLogger(__name__)


def read_properties(path: Path) -> Dict[str, str]:
    """Read a flat ``key=value`` properties file.

    Blank lines and lines starting with ``#`` or ``!`` are ignored. Keys may
    contain ``:`` (artifact keys do), so ``=`` is the only separator.
    """
    props: Dict[str, str] = {}
    with open(path, encoding="utf-8") as fh:
        for raw in fh:
            line = raw.strip()
            if not line or line[0] in "#!":
                continue
            key, sep, value = line.partition("=")
            if not sep:
                logger.debug("Ignoring property line without '=' in %s: %s", path, line)
                continue
            props[key.strip()] = value.strip()
    return props


def read_lines(path: Path) -> List[str]:
    """Return the non-empty, stripped lines of a text file."""
    with open(path, encoding="utf-8") as fh:
        return [line.strip() for line in fh if line.strip()]


def copy_file(src: Path, dst: Path) -> None:
    """Copy a file, creating parent directories and replacing ``dst``."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(src, dst)


def copy_tree(src: Path, dst: Path) -> None:
    """Copy a file or directory tree over ``dst``, merging directories."""
    if src.is_dir():
        shutil.copytree(src, dst, dirs_exist_ok=True)
    else:
        copy_file(src, dst)


def recursive_delete(path: Path) -> None:
    """Delete a file or directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def _matches(name: str, includes: Sequence[str], excludes: Sequence[str]) -> bool:
    if includes and not any(fnmatch.fnmatch(name, p) for p in includes):
        return False
    return not any(fnmatch.fnmatch(name, p) for p in excludes)


def extract_zip(
    archive: Path,
    target_dir: Path,
    *,
    prefix: str = "",
    includes: Sequence[str] = (),
    excludes: Sequence[str] = (),
) -> int:
    """Extract entries of ``archive`` into ``target_dir``.

    Only entries under ``prefix`` are extracted, with the prefix stripped.
    Filters are glob patterns matched against the entry name relative to the
    prefix. Existing files are overwritten. Returns the number of files
    written.
    """
    count = 0
    root = target_dir.resolve()
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            if prefix and not info.filename.startswith(prefix):
                continue
            relative = info.filename[len(prefix):]
            if not relative or not _matches(relative, includes, excludes):
                continue
            destination = (target_dir / relative).resolve()
            if os.path.commonpath([root, destination]) != str(root):
                logger.warning("Skipping zip entry outside target directory: %s", info.filename)
                continue
            if info.is_dir():
                destination.mkdir(parents=True, exist_ok=True)
                continue
            destination.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as source, open(destination, "wb") as out:
                shutil.copyfileobj(source, out)
            count += 1
    return count

