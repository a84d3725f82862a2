"""Data models for coverage reports and the analysis built from them."""

from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any


class TargetMode(enum.Enum):
    """How target directories are managed while tests run."""

    PER = "per"
    """A separate target directory for each test, run in parallel."""
    ONE = "one"
    """A single target directory reused sequentially."""

    def __str__(self) -> str:
        return self.value


@contextmanager
def _parsing(kind: str) -> Iterator[None]:
    try:
        yield
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"invalid {kind} in tarpaulin report: {exc!r}") from exc


def _line_hits(stats: Any) -> int:
    if not isinstance(stats, Mapping) or set(stats) != {"Line"}:
        raise ValueError(f"unknown line statistic: {stats!r}")
    return int(stats["Line"])


@dataclass(frozen=True)
class Trace:
    """Coverage of one source line."""

    line: int
    hits: int
    address: frozenset[int]
    length: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Trace:
        with _parsing("trace"):
            return cls(
                line=int(data["line"]),
                hits=_line_hits(data["stats"]),
                address=frozenset(int(a) for a in data["address"]),
                length=int(data["length"]),
            )


@dataclass(frozen=True)
class SourceFile:
    """One file in a tarpaulin report."""

    path: list[str]
    content: str
    traces: list[Trace]
    covered: int
    coverable: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SourceFile:
        with _parsing("source file"):
            return cls(
                path=[str(part) for part in data["path"]],
                content=str(data["content"]),
                traces=[Trace.from_dict(t) for t in data["traces"]],
                covered=int(data["covered"]),
                coverable=int(data["coverable"]),
            )


@dataclass(frozen=True)
class TarpaulinReport:
    """A tarpaulin JSON report."""

    files: list[SourceFile]
    coverage: float
    covered: int
    coverable: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TarpaulinReport:
        with _parsing("report"):
            return cls(
                files=[SourceFile.from_dict(f) for f in data["files"]],
                coverage=float(data["coverage"]),
                covered=int(data["covered"]),
                coverable=int(data["coverable"]),
            )


@dataclass
class FileCoverageAnalysis:
    """How one test covers one file."""

    total_covered_lines: int
    unique_covered_lines: int
    unique_lines: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_covered_lines": self.total_covered_lines,
            "unique_covered_lines": self.unique_covered_lines,
            "unique_lines": list(self.unique_lines),
        }


@dataclass
class TestCoverageAnalysis:
    """How one test covers the package."""

    __test__ = False

    total_covered_lines: int = 0
    unique_covered_lines: int = 0
    files: dict[str, FileCoverageAnalysis] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_covered_lines": self.total_covered_lines,
            "unique_covered_lines": self.unique_covered_lines,
            "files": {name: f.to_dict() for name, f in self.files.items()},
        }


@dataclass
class IsotarpAnalysis:
    """The complete analysis of a package's tests."""

    package: str
    tests: dict[str, TestCoverageAnalysis] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "package": self.package,
            "tests": {name: t.to_dict() for name, t in self.tests.items()},
        }