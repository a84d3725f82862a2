"""Command-line interface: list a package's tests or analyse their coverage."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from isotarp.analysis import run_analysis
from isotarp.cleanup import cleanup_target_dirs
from isotarp.errors import IsotarpError
from isotarp.models import TargetMode, TestCoverageAnalysis
from isotarp.report import save_analysis
from isotarp.resolve import resolve_test_patterns
from isotarp.tarpaulin import list_tests

DEFAULT_OUTPUT_DIR = "isotarp-output"
DEFAULT_REPORT = "isotarp-analysis.json"


def _package_version() -> str:
    try:
        return version("isotarp")
    except PackageNotFoundError:
        return "unknown"


def execute_list_command(package: str) -> list[str]:
    """Print every test in ``package`` and return their names."""
    tests = list_tests(package)
    print(f"Found {len(tests)} tests in package '{package}':")
    for test in tests:
        print(f"  {test}")
    return tests


def _select_tests(package: str, tests: Sequence[str] | None) -> list[str]:
    available = list_tests(package)
    if tests is None:
        print("No specific tests provided, analyzing all tests...")
        return available

    selected, invalid = resolve_test_patterns(available, tests)
    if invalid:
        print("Warning: The following test patterns did not match any tests:")
        for pattern in invalid:
            print(f"  {pattern}")
        if not selected:
            raise IsotarpError("No matching tests to analyze")
        print(f"Continuing with {len(selected)} matching tests.")
    return selected


def _print_summary(tests: dict[str, TestCoverageAnalysis]) -> None:
    with_unique: list[tuple[str, TestCoverageAnalysis]] = []
    without_unique: list[tuple[str, TestCoverageAnalysis]] = []
    without_any: list[str] = []

    for name, stats in tests.items():
        if stats.unique_covered_lines > 0:
            with_unique.append((name, stats))
        elif stats.total_covered_lines > 0:
            without_unique.append((name, stats))
        else:
            without_any.append(name)

    with_unique.sort(key=lambda item: item[1].unique_covered_lines, reverse=True)

    if with_unique:
        print("\nTests with unique line coverage:")
        for name, stats in with_unique:
            pct = stats.unique_covered_lines / stats.total_covered_lines * 100.0
            print(
                f"  {name}: {stats.unique_covered_lines} unique lines "
                f"({pct:.1f}% of {stats.total_covered_lines} total covered lines)"
            )

    if without_unique:
        covered = sum(stats.total_covered_lines for _, stats in without_unique)
        print(f"\nTests with NO unique coverage (but covering {covered} total lines):")
        for name, stats in without_unique:
            print(f"  {name}: 0 unique lines (covers {stats.total_covered_lines} total lines)")

    if without_any:
        print("\nTests with NO code coverage:")
        for name in without_any:
            print(f"  {name}")


def execute_analyze_command(
    package: str,
    tests: Sequence[str] | None,
    output_dir: str | os.PathLike[str],
    report: str | os.PathLike[str],
    target_mode: TargetMode,
) -> dict[str, TestCoverageAnalysis]:
    """Analyse the selected tests, save the report and print a summary.

    Returns the per-test analysis. Raises IsotarpError if no pattern matches.
    """
    output = Path(output_dir)
    report_path = Path(report)
    output.mkdir(parents=True, exist_ok=True)

    test_names = _select_tests(package, tests)

    print(
        f"Analyzing {len(test_names)} tests in package '{package}' "
        f"using target mode: {target_mode}"
    )

    try:
        analysis = run_analysis(package, test_names, output, target_mode)
    except Exception:
        cleanup_target_dirs(output, test_names)
        raise

    save_analysis(analysis, report_path)
    print(f"Analysis complete! Results saved to {report_path}")

    _print_summary(analysis.tests)

    cleanup_target_dirs(output, test_names)
    return analysis.tests


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``isotarp`` command."""
    parser = argparse.ArgumentParser(
        prog="isotarp",
        description="Analyze test coverage at the individual test level",
        epilog=(
            "Isotarp identifies which tests provide unique code coverage by running "
            "each test through cargo-tarpaulin individually and analyzing the results."
        ),
    )
    parser.add_argument("-V", "--version", action="version", version=_package_version())
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    list_cmd = commands.add_parser("list", help="List all tests in a package")
    list_cmd.add_argument("-p", "--package", required=True, help="Package name")

    analyze = commands.add_parser(
        "analyze", help="Run analysis on all tests or specific tests"
    )
    analyze.add_argument("-p", "--package", required=True, help="Package name")
    analyze.add_argument(
        "-t",
        "--tests",
        action="append",
        default=None,
        help="Specific tests to analyze (if not provided, all tests will be analyzed)",
    )
    analyze.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        default=Path(DEFAULT_OUTPUT_DIR),
        help="Output directory for intermediate results",
    )
    analyze.add_argument(
        "-r",
        "--report",
        type=Path,
        default=Path(DEFAULT_REPORT),
        help="Output file for the analysis result",
    )
    analyze.add_argument(
        "-m",
        "--target-mode",
        type=TargetMode,
        choices=list(TargetMode),
        default=TargetMode.PER,
        metavar="MODE",
        help=(
            '"per" creates a separate target dir for each test (default), '
            '"one" reuses a single target dir sequentially'
        ),
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == "list":
            execute_list_command(args.package)
        else:
            execute_analyze_command(
                args.package,
                args.tests,
                args.output_dir,
                args.report,
                args.target_mode,
            )
    except (IsotarpError, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())