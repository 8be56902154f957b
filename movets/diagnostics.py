"""Translation diagnostics."""

from __future__ import annotations

from .ir import Loc, loc_unknown


class Diagnostic(Exception):
    """Translation error with location info. Aborts the current module."""

    def __init__(self, msg: str, loc: Loc | None = None):
        self.msg: str = msg
        self.loc: Loc = loc if loc is not None else loc_unknown()
        super().__init__(msg)

    def __str__(self) -> str:
        return "error:" + str(self.loc) + ": " + self.msg


class InternalError(Exception):
    """Internal-consistency violation: a defect in the caller, not in the input."""
