"""Running cargo-tarpaulin for single tests and reading what it reports."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Iterable
from pathlib import Path

from isotarp.errors import CommandFailedError, TarpaulinFailedError
from isotarp.models import TarpaulinReport
from isotarp.paths import test_output_dir, test_report_path

_TEST_SUFFIX = ": test"


def _exit_status(returncode: int) -> str:
    return f"exit status: {returncode}"


def extract_covered_lines(report: TarpaulinReport, package_name: str) -> dict[str, set[int]]:
    """Map each file of the package to the set of its lines hit at least once."""
    covered: dict[str, set[int]] = {}
    for source in report.files:
        path = "/".join(source.path)
        if package_name not in path:
            continue
        lines = {trace.line for trace in source.traces if trace.hits > 0}
        if lines:
            covered[path] = lines
    return covered


def run_isolated_test_coverage(
    package_name: str,
    test_name: str,
    output_dir: str | os.PathLike[str],
    target_dir: str | os.PathLike[str],
    skip_clean: bool,
) -> dict[str, set[int]]:
    """Run tarpaulin for one test and return the lines it covers, by file.

    The package is expected to have been built already.
    """
    report_dir = test_output_dir(output_dir, test_name)
    try:
        report_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OSError(
            exc.errno, f"Failed to create output directory '{report_dir}': {exc}"
        ) from exc

    args = [
        "cargo",
        "tarpaulin",
        "-p",
        package_name,
        "--no-fail-fast",
        "--skip-clean" if skip_clean else "--force-clean",
        "--target-dir",
        str(target_dir),
        "-o",
        "Json",
        "--output-dir",
        str(report_dir),
        "--",
        test_name,
    ]

    print(f"Running coverage for test: {test_name}")
    try:
        completed = subprocess.run(args, capture_output=True)
    except OSError as exc:
        raise CommandFailedError(f"Failed to execute cargo command: {exc}") from exc

    if completed.returncode != 0:
        stderr = (completed.stderr or b"").decode("utf-8", errors="replace")
        raise TarpaulinFailedError(
            f"Tarpaulin failed for test '{test_name}' with status: "
            f"{_exit_status(completed.returncode)}\nStderr: {stderr}"
        )

    report_path = test_report_path(output_dir, test_name)
    try:
        content = Path(report_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(
            exc.errno, f"Failed to read tarpaulin report '{report_path}': {exc}"
        ) from exc

    report = TarpaulinReport.from_dict(json.loads(content))
    return extract_covered_lines(report, package_name)


def parse_test_list(output: str) -> list[str]:
    """Extract test names from the output of ``cargo test -- --list``."""
    return [_strip_suffix(line.strip()) for line in _test_lines(output.splitlines())]


def _test_lines(lines: Iterable[str]) -> Iterable[str]:
    return (line for line in lines if _TEST_SUFFIX in line)


def _strip_suffix(line: str) -> str:
    while line.endswith(_TEST_SUFFIX):
        line = line[: -len(_TEST_SUFFIX)]
    return line


def list_tests(package_name: str) -> list[str]:
    """Return the names of all tests in a package, as cargo lists them."""
    try:
        completed = subprocess.run(
            ["cargo", "test", "-p", package_name, "--", "--quiet", "--list"],
            capture_output=True,
        )
    except OSError as exc:
        raise CommandFailedError(
            f"Failed to execute 'cargo test --list': {exc}"
        ) from exc

    if completed.returncode != 0:
        stderr = (completed.stderr or b"").decode("utf-8", errors="replace")
        raise CommandFailedError(
            f"cargo test --list failed: {_exit_status(completed.returncode)}\nStderr: {stderr}"
        )

    return parse_test_list((completed.stdout or b"").decode("utf-8"))