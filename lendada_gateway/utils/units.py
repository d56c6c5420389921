"""ADA <-> lovelace conversion"""

from decimal import Decimal, ROUND_FLOOR
from lendada_gateway.domain.exceptions import ValidationError

LOVELACE_PER_ADA = 1_000_000


def to_lovelace(ada: float | int | Decimal) -> int:
    """Convert ADA to lovelace, flooring anything below one lovelace"""
    value = Decimal(str(ada))
    if not value.is_finite():
        raise ValidationError("Amount must be a finite number")
    return int((value * LOVELACE_PER_ADA).to_integral_value(rounding=ROUND_FLOOR))


def to_ada(lovelace: int) -> float:
    return lovelace / LOVELACE_PER_ADA


def whole_ada(lovelace: int) -> int:
    """Lovelace expressed in whole ADA (floored)"""
    return lovelace // LOVELACE_PER_ADA
