"""Running coverage for every test and working out which lines each covers alone."""

from __future__ import annotations

import os
import subprocess
import sys
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from isotarp.cleanup import cleanup_single_test_dir, cleanup_target_dirs
from isotarp.errors import CommandFailedError
from isotarp.models import (
    FileCoverageAnalysis,
    IsotarpAnalysis,
    TargetMode,
    TestCoverageAnalysis,
)
from isotarp.pipeline import TargetPipeline
from isotarp.targets import prepare_target_dirs
from isotarp.tarpaulin import run_isolated_test_coverage

MASTER_TARGET_DIR = Path("target")
MAX_THREADS = 8

Coverage = dict[str, set[int]]


def _run_cargo(args: list[str], description: str) -> None:
    completed = subprocess.run(["cargo", *args])
    if completed.returncode != 0:
        raise CommandFailedError(description)


def _cleanup_after(output_dir: Path, test_name: str) -> None:
    try:
        cleanup_single_test_dir(output_dir, test_name)
    except OSError as exc:
        print(
            f"Warning: Failed to clean up after test '{test_name}': {exc}",
            file=sys.stderr,
        )


def _run_per_test_targets(
    package_name: str, test_names: Sequence[str], output_dir: Path
) -> list[tuple[str, Coverage]]:
    print("Target mode: Per - Preparing individual target directories for execution...")
    target_dirs = prepare_target_dirs(MASTER_TARGET_DIR, test_names, output_dir)

    thread_count = min(os.cpu_count() or 1, MAX_THREADS)
    total = len(test_names)
    print(f"Running tests in parallel with {thread_count} threads")
    print(f"Processing {total} tests in sorted order")

    def run_one(idx: int) -> tuple[str, Coverage]:
        test_name = test_names[idx]
        print(f"[{idx + 1}/{total}] Running coverage for test: {test_name}")
        print(f"Running coverage for test: {test_name}")
        try:
            covered = run_isolated_test_coverage(
                package_name, test_name, output_dir, target_dirs[idx], True
            )
        except Exception as exc:
            _cleanup_after(output_dir, test_name)
            print(f"Error running test {test_name}: {exc}", file=sys.stderr)
            raise
        _cleanup_after(output_dir, test_name)
        return test_name, covered

    try:
        with ThreadPoolExecutor(max_workers=thread_count) as pool:
            results = list(pool.map(run_one, range(total)))
    except Exception as exc:
        print(f"Error during test execution: {exc}")
        cleanup_target_dirs(output_dir, test_names)
        raise

    cleanup_target_dirs(output_dir, test_names)
    return results


def _run_shared_target(
    package_name: str, test_names: Sequence[str], output_dir: Path
) -> list[tuple[str, Coverage]]:
    print("Target mode: One - Using a single reused target directory (sequential execution)")
    total = len(test_names)
    results: list[tuple[str, Coverage]] = []

    with TargetPipeline(MASTER_TARGET_DIR, output_dir) as pipeline:
        print("Running tests sequentially with pipeline preparation")
        print(f"Processing {total} tests")

        if test_names:
            pipeline.prepare_next(test_names[0])

        for idx, test_name in enumerate(test_names):
            print(f"[{idx + 1}/{total}] Running coverage for test: {test_name}")
            target_dir = pipeline.get_ready_target_dir()
            if idx + 1 < total:
                pipeline.prepare_next(test_names[idx + 1])

            print(f"Running coverage for test: {test_name}")
            try:
                covered = run_isolated_test_coverage(
                    package_name, test_name, output_dir, target_dir, True
                )
            except Exception as exc:
                print(f"Error running test {test_name}: {exc}", file=sys.stderr)
                pipeline.cleanup()
                raise
            results.append((test_name, covered))
            _cleanup_after(output_dir, test_name)

        pipeline.cleanup()
    return results


def run_analysis(
    package_name: str,
    test_names: Sequence[str],
    output_dir: str | os.PathLike[str],
    target_mode: TargetMode,
) -> IsotarpAnalysis:
    """Build the package once, run coverage for each test and analyse the results."""
    output = Path(output_dir)
    output.mkdir(parents=True, exist_ok=True)
    names = list(test_names)

    print("Cleaning and building package...")
    _run_cargo(["clean", "-p", package_name], "cargo clean")
    _run_cargo(["build", "--tests", "-p", package_name], "cargo build --tests")

    if target_mode is TargetMode.PER:
        collected = _run_per_test_targets(package_name, names, output)
    else:
        collected = _run_shared_target(package_name, names, output)

    return IsotarpAnalysis(
        package=package_name, tests=analyze_test_coverage(dict(collected))
    )


def analyze_test_coverage(
    results: Mapping[str, Mapping[str, set[int]]],
) -> dict[str, TestCoverageAnalysis]:
    """For each test, count the lines it covers and those no other test covers."""
    all_files = {name for files in results.values() for name in files}
    analysis: dict[str, TestCoverageAnalysis] = {}

    for test_name, file_lines in results.items():
        entry = TestCoverageAnalysis()
        others = [files for other, files in results.items() if other != test_name]

        for file_name in all_files:
            covered = set(file_lines.get(file_name, ()))
            if not covered:
                continue
            covered_elsewhere: set[int] = set()
            for other in others:
                covered_elsewhere |= set(other.get(file_name, ()))
            unique = covered - covered_elsewhere

            entry.total_covered_lines += len(covered)
            entry.unique_covered_lines += len(unique)
            entry.files[file_name] = FileCoverageAnalysis(
                total_covered_lines=len(covered),
                unique_covered_lines=len(unique),
                unique_lines=sorted(unique),
            )

        analysis[test_name] = entry

    return analysis