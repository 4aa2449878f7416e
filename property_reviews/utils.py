from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.inspection import inspect

def sa_to_dict(obj, exclude=None, prefix=None):
    """Convert a SQLAlchemy ORM object to a plain dict.

    Args:
        obj: SQLAlchemy ORM instance to convert.
        exclude: Optional set/list of attribute names to exclude from the dict.
        prefix: Optional string to prefix to each dict key.

    Returns:
        dict: Mapping of column attribute name -> value for the given ORM object.
    """
    exclude = exclude or set()
    prefix = prefix or ""
    return {
        prefix + c.key: getattr(obj, c.key)
        for c in inspect(obj).mapper.column_attrs
        if c.key not in exclude
    }

def project(row: dict, mapping: dict) -> dict:
    """Rename and order keys of `row` following `mapping` (output key -> row key)."""
    return {out: row.get(src) for out, src in mapping.items()}

def to_float(value):
    """Numeric/Decimal column value -> float, keeping None."""
    return None if value is None else float(value)

def to_iso(dt: datetime | None) -> str | None:
    """Format a naive-UTC (or aware) datetime as ISO-8601 with millisecond precision and a Z suffix."""
    if dt is None:
        return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec="milliseconds") + "Z"

def round_half_up(value, places: int = 1):
    """Round to `places` decimals with half-up semantics (2.25 -> 2.3, 2.35 -> 2.4).

    Args:
        value: float, Decimal or None (SQLite returns floats for AVG, Postgres Decimals).
        places: number of decimals to keep.

    Returns:
        float or None.
    """
    if value is None:
        return None
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
