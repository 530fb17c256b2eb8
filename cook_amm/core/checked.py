"""
Checked u64 arithmetic.

Everything that can underflow or overflow raises `ArithmeticRejection`. The
saturating helpers exist only for the provisional reserves of the liquidity
scaling loop; when one of them actually clamps a nonzero difference it logs a
warning and records a `SaturationAnomaly` so the caller can surface it.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Optional

from loguru import logger

from .errors import ArithmeticRejection, ValidationRejection


U64_MAX = (1 << 64) - 1
U32_MAX = (1 << 32) - 1


@dataclass(frozen=True)
class SaturationAnomaly:
    """A saturating operation clamped a nonzero difference."""

    context: str
    lhs: int
    rhs: int
    result: int


def require_u64(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationRejection(f"{name}_not_int")
    if not (0 <= value <= U64_MAX):
        raise ValidationRejection(f"{name}_out_of_range")
    return value


def require_u32(name: str, value: int) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationRejection(f"{name}_not_int")
    if not (0 <= value <= U32_MAX):
        raise ValidationRejection(f"{name}_out_of_range")
    return value


def checked_add(a: int, b: int, *, what: str = "add") -> int:
    out = a + b
    if out > U64_MAX:
        raise ArithmeticRejection(f"overflow_{what}")
    return out


def checked_sub(a: int, b: int, *, what: str = "sub") -> int:
    out = a - b
    if out < 0:
        raise ArithmeticRejection(f"underflow_{what}")
    return out


def checked_div(num: float, den: float, *, what: str = "div") -> float:
    if den == 0:
        raise ArithmeticRejection(f"divide_by_zero_{what}")
    return require_finite(num / den, what=what)


def require_finite(value: float, *, what: str = "value") -> float:
    if not math.isfinite(value):
        raise ArithmeticRejection(f"non_finite_{what}")
    return value


def saturating_sub(
    a: int,
    b: int,
    *,
    context: str,
    anomalies: Optional[List[SaturationAnomaly]] = None,
) -> int:
    """`max(a - b, 0)`, reporting the clamp when `b > a`."""
    if b <= a:
        return a - b
    anomaly = SaturationAnomaly(context=context, lhs=a, rhs=b, result=0)
    logger.warning("saturating_sub clamped in {}: {} - {} -> 0", context, a, b)
    if anomalies is not None:
        anomalies.append(anomaly)
    return 0


def saturating_add(
    a: int,
    b: int,
    *,
    context: str,
    anomalies: Optional[List[SaturationAnomaly]] = None,
) -> int:
    """`min(a + b, U64_MAX)`, reporting the clamp on overflow."""
    out = a + b
    if out <= U64_MAX:
        return out
    anomaly = SaturationAnomaly(context=context, lhs=a, rhs=b, result=U64_MAX)
    logger.warning("saturating_add clamped in {}: {} + {} -> u64::MAX", context, a, b)
    if anomalies is not None:
        anomalies.append(anomaly)
    return U64_MAX
