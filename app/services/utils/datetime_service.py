from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union
import math
import re

"""
Utilidades de fecha/hora compartidas.
Todas las fechas se guardan como UTC naive (sin tzinfo), igual que `datetime.utcnow()`.
"""

_HH_MM_PATTERN = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def get_utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_utc_today() -> date:
    return get_utc_now().date()


def get_parsed_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Convierte un ISO-8601 (o datetime) a UTC naive.
    Devuelve None si el valor no se puede interpretar.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def get_parsed_date(value: Union[str, date, None]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        # Solo "YYYY-MM-DD" o un datetime ISO completo
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            parsed = get_parsed_datetime(value)
            return parsed.date() if parsed else None
    return None


def get_normalized_time(value: Union[str, time, None]) -> Optional[str]:
    """
    Normaliza una hora del día a "HH:MM" para que la comparación de texto
    coincida con la cronológica. "9:00" -> "09:00", "09:30:00" -> "09:30".
    """
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if not isinstance(value, str) or not _HH_MM_PATTERN.match(value.strip()):
        return None

    parts = value.strip().split(":")
    hour, minute = int(parts[0]), int(parts[1])
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def get_duration_minutes(start: datetime, end: datetime) -> int:
    # Redondeo hacia arriba en .5, como el cálculo de precios
    return math.floor((end - start).total_seconds() / 60 + 0.5)


def get_expiry_from_now(hours: int) -> datetime:
    return get_utc_now() + timedelta(hours=hours)


def get_sunday_based_weekday(value: datetime) -> int:
    # Python: lunes=0; en la disponibilidad domingo=0
    return (value.weekday() + 1) % 7
