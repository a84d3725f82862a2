# isotarp

Find out which tests in a Rust package cover which lines, which tests give
coverage that no other test gives, and which tests are redundant.

isotarp runs every test on its own through `cargo tarpaulin` and compares
the coverage reports. A line counts as *unique* to a test when no other
analysed test covers it.

## Requirements

- Python 3.10 or later
- `cargo` and `cargo-tarpaulin` on your `PATH`

isotarp has no Python dependencies beyond the standard library.

## Installation

```
pip install .
```

## Usage

Run these commands from the root of the Cargo workspace that holds the
package: the build directory isotarp copies from is `target` in the
current directory.

List the tests in a package:

```
isotarp list -p demolib
```

Analyse every test:

```
isotarp analyze -p demolib
```

Analyse only some tests. Give `-t` once per pattern. A pattern may be a
full path (`tests::test_foo`), a bare test name (`test_foo`), or a
wildcard with `*` and `?`. A pattern containing `::` is matched against
the full test path; one without `::` is matched against the name after
the last `::`:

```
isotarp analyze -p demolib -t 'test_f*' -t 'other::*'
```

Patterns that match nothing are reported as a warning. If no pattern
matches anything the command fails with "No matching tests to analyze".

`isotarp -V` prints the installed version. On an error the command prints
it to standard error and exits with status 1.

### Options for `analyze`

| Option | Default | Meaning |
| --- | --- | --- |
| `-p`, `--package` | (required) | Package name |
| `-t`, `--tests` | all tests | A test or pattern to analyse; may be repeated |
| `-o`, `--output-dir` | `isotarp-output` | Directory for the per-test tarpaulin reports |
| `-r`, `--report` | `isotarp-analysis.json` | File the analysis is written to |
| `-m`, `--target-mode` | `per` | `per`: a separate target directory per test, run in parallel on up to 8 threads; `one`: one reused target directory, run in sequence (less disk space) |

Before running the tests isotarp runs `cargo clean -p PACKAGE` and
`cargo build --tests -p PACKAGE`. Per-test target directories are kept in
a hidden `.isotarp-artifacts` directory beside the output directory and
are removed again as each test finishes.

## The report

The report is pretty-printed JSON with all object keys sorted. For each
test it gives the number of lines covered, the number covered by that
test alone, and a per-file breakdown:

```json
{
  "package": "demolib",
  "tests": {
    "tests::test_foo": {
      "files": {
        "src/functions.rs": [1, 2, 3]
      },
      "total_covered_lines": 3,
      "unique_covered_lines": 3
    },
    "tests::test_not_bar": {
      "files": {},
      "total_covered_lines": 0,
      "unique_covered_lines": 0
    }
  }
}
```

Note the shape of a file entry: where the test covers lines of the file
that no other test covers, the entry is just the ascending list of those
unique line numbers. Where it covers lines of the file but none uniquely,
the entry is an object with `total_covered_lines`,
`unique_covered_lines` (0) and an empty `unique_lines` list. Only files
whose path contains the package name are counted.

After saving the report, isotarp prints a summary grouping tests into
those with unique coverage (most unique lines first, with the percentage
of their covered lines that are unique), those with coverage but nothing
unique, and those with no coverage at all.

## Use from Python

```python
from isotarp.cli import execute_analyze_command
from isotarp.models import TargetMode

tests = execute_analyze_command(
    "demolib", ["test_foo"], "isotarp-output", "isotarp-analysis.json", TargetMode.ONE
)
for name, stats in tests.items():
    print(name, stats.unique_covered_lines, stats.total_covered_lines)
```

`execute_analyze_command` returns a dict of test name to
`TestCoverageAnalysis`; `execute_list_command` prints and returns the
test names. Errors are raised as `isotarp.errors.IsotarpError` (with
`CommandFailedError` and `TarpaulinFailedError` for failed commands) or
`OSError`.

These parts also work by themselves, without running cargo:

- `isotarp.resolve.resolve_test_patterns(available_tests, patterns)`
  returns the sorted, deduplicated matching tests and the patterns that
  matched nothing.
- `isotarp.analysis.analyze_test_coverage(results)` takes a mapping of
  test name to `{file: set_of_lines}` and returns the per-test analysis.
- `isotarp.tarpaulin.parse_test_list(output)` reads test names from the
  output of `cargo test -- --list`, and
  `isotarp.tarpaulin.extract_covered_lines(report, package_name)` reads
  covered lines from a `TarpaulinReport`
  (`TarpaulinReport.from_dict(json.load(...))`).
- `isotarp.report.save_analysis(analysis, path)` writes an
  `IsotarpAnalysis` as described above.