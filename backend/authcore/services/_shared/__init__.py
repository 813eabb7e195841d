"""Cross-cutting service primitives: base class, errors, results and ports."""
