"""
cargo-feature-aspect - create and update feature aspects across a Cargo workspace.

This package provides:
- Workspace metadata loading through `cargo metadata`
- Dependency graph construction and deterministic ordering
- Propagation of a leaf feature to every dependent package
- Formatting-preserving edits of Cargo.toml `[features]` tables
"""

__version__ = "0.1.10"
