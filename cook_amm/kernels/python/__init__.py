"""Production Python kernels (integer-only)."""
