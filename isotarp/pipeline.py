"""A single reusable target directory, prepared in the background for the next test."""

from __future__ import annotations

import os
import shutil
import sys
import threading
from pathlib import Path
from types import TracebackType

from isotarp.paths import artifacts_dir

SHARED_TARGET_NAME = "shared_target"
STAGING_TARGET_NAME = "staging_target"

_TARGET_SUBDIRS = (
    "debug/.fingerprint",
    "debug/deps",
    "debug/build",
    "debug/incremental",
)


def _setup_minimal_target_dir(target_dir: Path) -> None:
    debug_dir = target_dir / "debug"
    debug_dir.mkdir(parents=True, exist_ok=True)
    for sub in _TARGET_SUBDIRS:
        (target_dir / sub).mkdir(parents=True, exist_ok=True)
    cargo_lock = debug_dir / ".cargo-lock"
    if not cargo_lock.exists():
        cargo_lock.write_text("")


class TargetPipeline:
    """Keeps one shared target directory and stages the next one while a test runs.

    Use as a context manager to remove both directories when done.
    """

    def __init__(
        self, master_target_dir: str | os.PathLike[str], output_dir: str | os.PathLike[str]
    ) -> None:
        artifacts = artifacts_dir(output_dir)
        artifacts.mkdir(parents=True, exist_ok=True)

        self._master_target_dir = Path(master_target_dir)
        self._output_dir = Path(output_dir)
        self._shared_target_dir = artifacts / SHARED_TARGET_NAME
        self._staging_dir = artifacts / STAGING_TARGET_NAME

        self._shared_target_dir.mkdir(parents=True, exist_ok=True)
        self._staging_dir.mkdir(parents=True, exist_ok=True)
        _setup_minimal_target_dir(self._shared_target_dir)

        self._lock = threading.Lock()
        self._next_test: str | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._prepare_error: BaseException | None = None

    def _prepare(self, test_name: str) -> None:
        staging = self._staging_dir
        if staging.exists():
            shutil.rmtree(staging)
        staging.mkdir(parents=True, exist_ok=True)
        _setup_minimal_target_dir(staging)

        print(f"Preparing target directory for test '{test_name}' in the background")

        master_deps = self._master_target_dir / "debug" / "deps"
        staging_deps = staging / "debug" / "deps"
        if master_deps.exists():
            for path in master_deps.iterdir():
                if not path.is_file():
                    continue
                if self._stop.is_set():
                    return
                shutil.copy(path, staging_deps / path.name)

        print(f"Background preparation complete for test '{test_name}'")

    def _run_preparation(self, test_name: str) -> None:
        try:
            self._prepare(test_name)
        except Exception as exc:  # reported when the directory is collected
            self._prepare_error = exc

    def _stop_preparation(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._prepare_error = None
        self._stop.clear()

    def prepare_next(self, test_name: str) -> None:
        """Start staging a target directory for ``test_name`` in the background."""
        self._stop_preparation()
        with self._lock:
            self._next_test = test_name
        thread = threading.Thread(
            target=self._run_preparation,
            args=(test_name,),
            name=f"isotarp-prepare-{test_name}",
            daemon=True,
        )
        self._thread = thread
        thread.start()

    def get_ready_target_dir(self) -> Path:
        """Wait for staging to finish, swap it in and return the shared target directory."""
        if self._thread is not None:
            self._thread.join()
            self._thread = None
            error, self._prepare_error = self._prepare_error, None
            if isinstance(error, OSError):
                print(f"Error preparing target directory: {error}", file=sys.stderr)
            elif error is not None:
                print("Background preparation thread panicked", file=sys.stderr)

        with self._lock:
            current, self._next_test = self._next_test, None

        if current is not None:
            print(f"Swapping prepared target directory for test '{current}'")
            if self._staging_dir.exists():
                if self._shared_target_dir.exists():
                    shutil.rmtree(self._shared_target_dir)
                self._staging_dir.rename(self._shared_target_dir)
                self._staging_dir.mkdir(parents=True, exist_ok=True)

        return self._shared_target_dir

    def cleanup(self) -> None:
        """Stop background work and remove the shared and staging directories."""
        self._stop_preparation()
        if self._shared_target_dir.exists():
            shutil.rmtree(self._shared_target_dir)
        if self._staging_dir.exists():
            shutil.rmtree(self._staging_dir)

    def __enter__(self) -> TargetPipeline:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            self.cleanup()
        except OSError:
            pass