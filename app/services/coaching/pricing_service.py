from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Optional

CENTS = Decimal("0.01")


def get_session_price(hourly_rate: Any, duration_minutes: int) -> Decimal:
    """
    Precio de una sesión: tarifa por hora * minutos / 60, redondeado a 2
    decimales (half-up). Se usa igual para el precio estimado y el final.

    >>> get_session_price(1500, 90)
    Decimal('2250.00')
    """
    rate = get_decimal(hourly_rate)
    if rate is None:
        raise ValueError(f"Invalid hourly rate: {hourly_rate!r}")
    price = rate * Decimal(duration_minutes) / Decimal(60)
    return price.quantize(CENTS, rounding=ROUND_HALF_UP)


def get_decimal(value: Any) -> Optional[Decimal]:
    """Convierte números y strings numéricos a Decimal; None si no es posible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result
