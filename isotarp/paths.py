"""Locations of per-test output, target and report paths."""

from __future__ import annotations

import os
from pathlib import Path

ARTIFACTS_DIR_NAME = ".isotarp-artifacts"
TARGET_DIR_NAME = "tarpaulin-target"
REPORT_FILE_NAME = "tarpaulin-report.json"


def artifacts_dir(output_dir: str | os.PathLike[str]) -> Path:
    """Return the hidden artifacts directory that sits beside the output directory."""
    output = Path(output_dir)
    parent = output.parent
    if parent == output:
        return Path(ARTIFACTS_DIR_NAME)
    return parent / ARTIFACTS_DIR_NAME


def test_name_to_path_segment(test_name: str) -> str:
    """Turn ``module::sub::name`` into ``module/sub/name``."""
    return test_name.replace("::", "/")


def test_output_dir(output_dir: str | os.PathLike[str], test_name: str) -> Path:
    """Return the directory that holds a test's report."""
    return Path(output_dir) / test_name_to_path_segment(test_name)


def test_target_dir(output_dir: str | os.PathLike[str], test_name: str) -> Path:
    """Return the build target directory used for a test."""
    return (
        artifacts_dir(output_dir)
        / test_name_to_path_segment(test_name)
        / TARGET_DIR_NAME
    )


def test_report_path(output_dir: str | os.PathLike[str], test_name: str) -> Path:
    """Return the path of a test's coverage report."""
    return test_output_dir(output_dir, test_name) / REPORT_FILE_NAME


# Keep pytest from collecting these helpers when a test module imports them.
for _func in (test_name_to_path_segment, test_output_dir, test_target_dir, test_report_path):
    _func.__test__ = False  # type: ignore[attr-defined]
del _func