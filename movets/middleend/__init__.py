"""IR analysis passes (read-only, no transformations)."""

from .declarations import compute_undeclared, destructured_vars, lvalue_names

__all__ = ["compute_undeclared", "destructured_vars", "lvalue_names"]
