"""Exception types for the swap and claim engine.

Pure steps return a result with a ``rejection`` reason string of the form
``"<category>:<reason>"``; ``*_or_raise()`` callers get one of the exceptions
below instead. Nothing is retried and nothing is committed on a rejection.
"""

from __future__ import annotations

from typing import Dict, Type


class EngineError(Exception):
    """Base class for all engine rejections."""

    category = "error"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(self.code)

    @property
    def code(self) -> str:
        return f"{self.category}:{self.reason}"


class ValidationRejection(EngineError):
    """Malformed or mismatched identity, missing authority, wrong record type, bad argument."""

    category = "validation"


class ArithmeticRejection(EngineError):
    """Zero output, dust floor breach, division by zero, underflow, non-finite float."""

    category = "arithmetic"


class TemporalRejection(EngineError):
    """Claim for the current or a future day, missing reward-day record, exhausted budget."""

    category = "temporal"


_BY_CATEGORY: Dict[str, Type[EngineError]] = {
    cls.category: cls for cls in (ValidationRejection, ArithmeticRejection, TemporalRejection)
}


def rejection_from_code(code: str) -> EngineError:
    """Rebuild the typed exception for a ``"<category>:<reason>"`` rejection string."""
    category, sep, reason = code.partition(":")
    cls = _BY_CATEGORY.get(category)
    if not sep or cls is None:
        return ValidationRejection(code)
    return cls(reason)
