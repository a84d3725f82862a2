"""Per-test target directories populated from a master build directory."""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from isotarp.paths import artifacts_dir, test_output_dir, test_target_dir

_WRITE_DIRS = (
    "debug/.fingerprint",
    "debug/deps",
    "debug/build",
    "debug/incremental",
)
_COPY_DIR = "debug/deps"
_SYMLINK_DIRS = ("debug/examples", "debug/build/src")


@contextmanager
def _path_context(path: object) -> Iterator[None]:
    try:
        yield
    except OSError as exc:
        raise OSError(exc.errno, f"Error processing path '{path}': {exc}") from exc


def _regular_files(root: Path) -> Iterator[Path]:
    """Yield regular files under ``root`` without following symlinks."""
    for dirpath, _dirnames, filenames in os.walk(root):
        for name in filenames:
            path = Path(dirpath) / name
            if not path.is_symlink() and path.is_file():
                yield path


def _create_symlink(original: Path, link: Path) -> None:
    print(f"Symlinking {original} → {link}")
    os.symlink(original, link, target_is_directory=original.is_dir())


def _prepare_one(master_target_dir: Path, test_name: str, output_dir: Path) -> Path:
    print(f"Preparing target directory for test: {test_name}")

    report_dir = test_output_dir(output_dir, test_name)
    with _path_context(report_dir):
        report_dir.mkdir(parents=True, exist_ok=True)

    target_dir = test_target_dir(output_dir, test_name)
    with _path_context(target_dir):
        target_dir.mkdir(parents=True, exist_ok=True)

    debug_dir = target_dir / "debug"
    debug_dir.mkdir(parents=True, exist_ok=True)

    cargo_lock = debug_dir / ".cargo-lock"
    if not cargo_lock.exists():
        with _path_context(cargo_lock):
            cargo_lock.write_text("")

    for sub in _WRITE_DIRS:
        dest_dir = target_dir / sub
        with _path_context(dest_dir):
            dest_dir.mkdir(parents=True, exist_ok=True)
        if sub != _COPY_DIR:
            continue
        source_dir = master_target_dir / sub
        if not source_dir.exists():
            continue
        for source in _regular_files(source_dir):
            dest_file = dest_dir / source.relative_to(source_dir)
            if dest_file.exists():
                continue
            with _path_context(f"Failed to copy from '{source}' to '{dest_file}'"):
                shutil.copy(source, dest_file)

    for sub in _SYMLINK_DIRS:
        source_dir = master_target_dir / sub
        if not source_dir.exists():
            continue
        dest_dir = target_dir / sub
        with _path_context(dest_dir):
            dest_dir.mkdir(parents=True, exist_ok=True)
        for source in _regular_files(source_dir):
            dest_file = dest_dir / source.relative_to(source_dir)
            parent = dest_file.parent
            if not parent.exists():
                with _path_context(parent):
                    parent.mkdir(parents=True, exist_ok=True)
            if dest_file.exists():
                continue
            with _path_context(f"Failed to symlink from '{source}' to '{dest_file}'"):
                _create_symlink(source, dest_file)

    return target_dir


def prepare_target_dirs(
    master_target_dir: str | os.PathLike[str],
    test_names: Iterable[str],
    output_dir: str | os.PathLike[str],
) -> list[Path]:
    """Create a target directory for each test, copying deps and linking read-only files.

    Returns the target directories in the order of ``test_names``.
    """
    master = Path(master_target_dir)
    output = Path(output_dir)
    artifacts_dir(output).mkdir(parents=True, exist_ok=True)
    return [_prepare_one(master, name, output) for name in test_names]