import json

import pytest

from isotarp.models import FileCoverageAnalysis, IsotarpAnalysis, TestCoverageAnalysis
from isotarp.report import save_analysis


def _analysis():
    return IsotarpAnalysis(
        package="demolib",
        tests={
            "tests::test_not_bar": TestCoverageAnalysis(
                total_covered_lines=2,
                unique_covered_lines=0,
                files={"src/lib.rs": FileCoverageAnalysis(2, 0, [])},
            ),
            "tests::test_foo": TestCoverageAnalysis(
                total_covered_lines=4,
                unique_covered_lines=2,
                files={"src/functions.rs": FileCoverageAnalysis(4, 2, [9, 3])},
            ),
        },
    )


def test_saved_report_is_valid_json(tmp_path):
    path = tmp_path / "analysis.json"
    save_analysis(_analysis(), path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["package"] == "demolib"
    assert data["tests"]["tests::test_foo"]["unique_covered_lines"] == 2
    assert data["tests"]["tests::test_not_bar"]["unique_covered_lines"] == 0


def test_keys_are_sorted(tmp_path):
    path = tmp_path / "analysis.json"
    save_analysis(_analysis(), path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert list(data) == sorted(data)
    assert list(data["tests"]) == ["tests::test_foo", "tests::test_not_bar"]
    entry = data["tests"]["tests::test_foo"]
    assert list(entry) == sorted(entry)


def test_numeric_unique_lines_are_sorted_and_replace_entry(tmp_path):
    path = tmp_path / "analysis.json"
    save_analysis(_analysis(), path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["tests"]["tests::test_foo"]["files"]["src/functions.rs"] == [3, 9]


def test_empty_unique_lines_keep_full_entry(tmp_path):
    path = tmp_path / "analysis.json"
    save_analysis(_analysis(), path)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["tests"]["tests::test_not_bar"]["files"]["src/lib.rs"] == {
        "total_covered_lines": 2,
        "unique_covered_lines": 0,
        "unique_lines": [],
    }


def test_output_is_indented(tmp_path):
    path = tmp_path / "analysis.json"
    save_analysis(IsotarpAnalysis(package="demolib"), path)
    assert path.read_text(encoding="utf-8") == '{\n  "package": "demolib",\n  "tests": {}\n}'


def test_unwritable_path_raises(tmp_path):
    with pytest.raises(OSError):
        save_analysis(_analysis(), tmp_path / "missing" / "analysis.json")