import json
import subprocess
from pathlib import Path

import pytest

from isotarp.cli import build_parser, execute_analyze_command, execute_list_command, main
from isotarp.errors import CommandFailedError, IsotarpError
from isotarp.models import TargetMode

LIB = ["", "home", "demolib", "src", "lib.rs"]
FUNCTIONS = ["", "home", "demolib", "src", "functions.rs"]
LIB_PATH = "/home/demolib/src/lib.rs"
FUNCTIONS_PATH = "/home/demolib/src/functions.rs"

COVERAGE = {
    "tests::test_foo": {tuple(LIB): [15], tuple(FUNCTIONS): [2, 3]},
    "tests::test_not_bar": {tuple(LIB): [15]},
}

LIST_OUTPUT = (
    "tests::test_foo: test\n"
    "tests::test_not_bar: test\n"
    "\n"
    "2 tests, 0 benchmarks\n"
)


def _report(files):
    return {
        "files": [
            {
                "path": list(path),
                "content": "",
                "traces": [
                    {"line": line, "stats": {"Line": 1}, "address": [], "length": 1}
                    for line in lines
                ],
                "covered": len(lines),
                "coverable": len(lines),
            }
            for path, lines in files.items()
        ],
        "coverage": 100.0,
        "covered": 0,
        "coverable": 0,
    }


class FakeCargo:
    def __init__(self, fail_on=None):
        self.fail_on = fail_on
        self.calls = []

    def __call__(self, args, capture_output=False, **kwargs):
        self.calls.append(list(args))
        sub = args[1]
        if sub == self.fail_on:
            return subprocess.CompletedProcess(args, 1, stdout=b"", stderr=b"boom")
        stdout = b""
        if sub == "test":
            stdout = LIST_OUTPUT.encode()
        elif sub == "tarpaulin":
            out_dir = Path(args[args.index("--output-dir") + 1])
            out_dir.mkdir(parents=True, exist_ok=True)
            files = COVERAGE.get(args[-1], {})
            (out_dir / "tarpaulin-report.json").write_text(json.dumps(_report(files)))
        return subprocess.CompletedProcess(args, 0, stdout=stdout, stderr=b"")


@pytest.fixture
def cargo(monkeypatch, tmp_path):
    fake = FakeCargo()
    monkeypatch.setattr(subprocess, "run", fake)
    monkeypatch.chdir(tmp_path)
    return fake


def test_parser_analyze_defaults():
    args = build_parser().parse_args(["analyze", "-p", "demolib"])
    assert args.command == "analyze"
    assert args.package == "demolib"
    assert args.tests is None
    assert args.output_dir == Path("isotarp-output")
    assert args.report == Path("isotarp-analysis.json")
    assert args.target_mode is TargetMode.PER


def test_parser_analyze_options():
    args = build_parser().parse_args(
        ["analyze", "-p", "x", "-t", "a", "-t", "b::*", "-o", "out", "-r", "r.json", "-m", "one"]
    )
    assert args.tests == ["a", "b::*"]
    assert args.output_dir == Path("out")
    assert args.report == Path("r.json")
    assert args.target_mode is TargetMode.ONE


def test_parser_rejects_unknown_mode():
    with pytest.raises(SystemExit) as info:
        build_parser().parse_args(["analyze", "-p", "x", "-m", "many"])
    assert info.value.code == 2


def test_parser_requires_command():
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 2


def test_list_command_valid_package(cargo, capsys):
    tests = execute_list_command("demolib")
    assert tests == ["tests::test_foo", "tests::test_not_bar"]
    out = capsys.readouterr().out
    assert "Found 2 tests in package 'demolib':" in out
    assert "  tests::test_not_bar" in out


def test_analyze_nonexistent_pattern(cargo, tmp_path):
    with pytest.raises(IsotarpError, match="No matching tests to analyze"):
        execute_analyze_command(
            "demolib",
            ["definitely_nonexistent_pattern_xyz123"],
            tmp_path / "out",
            tmp_path / "analysis-report.json",
            TargetMode.PER,
        )


def test_analyze_output_dir_is_file(cargo, tmp_path):
    blocker = tmp_path / "output"
    blocker.write_text("not a directory")
    with pytest.raises(OSError):
        execute_analyze_command(
            "demolib",
            ["tests::test_foo"],
            blocker,
            tmp_path / "analysis-report.json",
            TargetMode.PER,
        )


def test_analyze_zero_unique_single_test(cargo, tmp_path):
    report = tmp_path / "analysis-report.json"
    result = execute_analyze_command(
        "demolib", ["tests::test_not_bar"], tmp_path / "out", report, TargetMode.PER
    )
    assert set(result) == {"tests::test_not_bar"}
    assert result["tests::test_not_bar"].total_covered_lines == 1
    assert report.exists()


@pytest.mark.parametrize("mode", [TargetMode.PER, TargetMode.ONE])
def test_analyze_mixed_tests(cargo, tmp_path, capsys, mode):
    report = tmp_path / "analysis-report.json"
    result = execute_analyze_command(
        "demolib",
        ["tests::test_foo", "tests::test_not_bar"],
        tmp_path / "out",
        report,
        mode,
    )
    assert result["tests::test_foo"].unique_covered_lines == 2
    assert result["tests::test_foo"].total_covered_lines == 3
    assert result["tests::test_not_bar"].unique_covered_lines == 0
    assert result["tests::test_not_bar"].total_covered_lines == 1

    saved = json.loads(report.read_text())
    assert saved["package"] == "demolib"
    assert saved["tests"]["tests::test_foo"]["unique_covered_lines"] == 2
    assert saved["tests"]["tests::test_not_bar"]["unique_covered_lines"] == 0

    out = capsys.readouterr().out
    assert f"using target mode: {mode.value}" in out
    assert "tests::test_foo: 2 unique lines (66.7% of 3 total covered lines)" in out
    assert "Tests with NO unique coverage (but covering 1 total lines):" in out
    assert "tests::test_not_bar: 0 unique lines (covers 1 total lines)" in out


def test_analyze_all_tests_when_none_given(cargo, tmp_path, capsys):
    result = execute_analyze_command(
        "demolib", None, tmp_path / "out", tmp_path / "r.json", TargetMode.PER
    )
    assert sorted(result) == ["tests::test_foo", "tests::test_not_bar"]
    assert "No specific tests provided, analyzing all tests..." in capsys.readouterr().out


def test_analyze_build_failure(monkeypatch, tmp_path):
    fake = FakeCargo(fail_on="build")
    monkeypatch.setattr(subprocess, "run", fake)
    monkeypatch.chdir(tmp_path)
    with pytest.raises(CommandFailedError, match="cargo build --tests"):
        execute_analyze_command(
            "demolib", None, tmp_path / "out", tmp_path / "r.json", TargetMode.PER
        )
    assert not (tmp_path / "r.json").exists()


def test_main_list(cargo, capsys):
    assert main(["list", "-p", "demolib"]) == 0
    assert "Found 2 tests in package 'demolib':" in capsys.readouterr().out


def test_main_reports_error(cargo, capsys):
    assert main(["analyze", "-p", "demolib", "-t", "nonexistent"]) == 1
    captured = capsys.readouterr()
    assert "No matching tests to analyze" in captured.err
    assert "  nonexistent" in captured.out


def test_main_analyze_writes_report(cargo, tmp_path):
    assert main(["analyze", "-p", "demolib", "-r", "report.json"]) == 0
    saved = json.loads((tmp_path / "report.json").read_text())
    assert saved["tests"]["tests::test_foo"]["total_covered_lines"] == 3
    assert (tmp_path / "isotarp-output").is_dir()