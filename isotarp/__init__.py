"""Per-test line coverage analysis for Rust packages using cargo-tarpaulin."""

__version__ = "0.1.12"