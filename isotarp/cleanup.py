"""Removal of per-test target directories and leftover empty directories."""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable
from pathlib import Path

from isotarp.paths import artifacts_dir, test_target_dir


def _is_effectively_empty(path: Path) -> bool:
    """True if the directory holds nothing but (possibly nested) empty directories."""
    if not path.is_dir():
        return False
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                if not entry.is_dir(follow_symlinks=False):
                    return False
                if not _is_effectively_empty(Path(entry.path)):
                    return False
    except OSError:
        return False
    return True


def _remove_empty_directories(path: Path) -> bool:
    if not path.is_dir() or not _is_effectively_empty(path):
        return False

    try:
        children = [child for child in path.iterdir() if child.is_dir()]
    except OSError:
        children = []
    for child in children:
        _remove_empty_directories(child)

    try:
        path.rmdir()
    except OSError as exc:
        print(f"Warning: Failed to clean up empty directory '{path}': {exc}")
        return False
    print(f"Removed empty directory: {path}")
    return True


def cleanup_single_test_dir(output_dir: str | os.PathLike[str], test_name: str) -> None:
    """Remove a test's target directory and its parent if that is left empty.

    Raises OSError if the target directory cannot be removed.
    """
    target = test_target_dir(output_dir, test_name)
    if target.exists():
        print(f"Cleaning up target directory for test: {test_name}")
        shutil.rmtree(target)

    parent = target.parent
    if parent.exists() and _is_effectively_empty(parent):
        _remove_empty_directories(parent)


def cleanup_target_dirs(output_dir: str | os.PathLike[str], test_names: Iterable[str]) -> None:
    """Remove every test's target directory, then any empty artifacts directories."""
    print("Cleaning up temporary target directories...")
    artifacts = artifacts_dir(output_dir)

    for test_name in test_names:
        try:
            cleanup_single_test_dir(output_dir, test_name)
        except OSError as exc:
            print(f"Warning: Failed to clean up directory for test '{test_name}': {exc}")

    if artifacts.exists():
        _remove_empty_directories(artifacts)