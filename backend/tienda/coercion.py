"""
Tienda Services: Value Coercion
=================================

What:  Converters for values that arrive as form strings, JSON numbers or
       JSON text, shared by the product schemas and the receipt service.
How:   Each converter raises ValueError with a short Spanish reason; callers
       attach the field name and turn it into a 400.

Number bounds:
    Decimal accepts exponents like "1e1000000", and turning one of those
    into an int allocates millions of digits. to_decimal therefore refuses
    any number whose decimal exponent lies outside ±MAX_EXPONENT, and to_int
    checks the result against the width of the column it is headed for:

        INT32   stock, stock_critico, user_id, row ids
        INT64   boleta.numero_compra

    Out-of-range values raise OutOfRangeError, a ValueError subclass, so
    callers that only care about "not a usable number" need no extra branch.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Tuple, Union

TRUTHY_VALUES = ("true", "1")

# NUMERIC(38) is the widest precision the supported databases agree on
MAX_EXPONENT = 38

INT32: Tuple[int, int] = (-(2**31), 2**31 - 1)
INT64: Tuple[int, int] = (-(2**63), 2**63 - 1)


class OutOfRangeError(ValueError):
    """A well-formed number that does not fit the target column."""


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("debe ser numérico")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("debe ser numérico") from None
    if not number.is_finite():
        raise ValueError("debe ser numérico")
    if number.is_zero():
        return Decimal(0)
    if abs(number.adjusted()) > MAX_EXPONENT:
        raise OutOfRangeError("está fuera de rango")
    return number


def to_int(value: Any, bounds: Tuple[int, int] = INT32) -> int:
    """
    Integral number within `bounds` (inclusive).

        to_int("50") → 50     to_int("1.5") → ValueError
        to_int("3000000000") → OutOfRangeError
        to_int("3000000000", bounds=INT64) → 3000000000
    """
    number = to_decimal(value)
    if number != number.to_integral_value():
        raise ValueError("debe ser un número entero")
    result = int(number)
    low, high = bounds
    if not low <= result <= high:
        raise OutOfRangeError("está fuera de rango")
    return result


def to_flag(value: Any) -> bool:
    """Only "true", true, 1 and "1" count as true; everything else is false."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value in TRUTHY_VALUES
    return False


def to_text(value: Any) -> Any:
    """Numbers become their text form; other values pass through."""
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    return value


def lookup_key(raw: str, bounds: Tuple[int, int] = INT32) -> Union[int, str]:
    """
    Path-parameter lookup key: integral numbers that fit the column are used
    as numbers, anything else is kept as text and compared against the
    column's text form (so it simply matches nothing).

        "42" → 42     " 7 " → 7     "abc" → "abc"     "1.5" → "1.5"
        "99999999999" → "99999999999"     "1e1000000" → "1e1000000"
    """
    try:
        return to_int(raw, bounds)
    except ValueError:
        return raw


def from_json_text(value: Any) -> Any:
    """Parse JSON text; non-string values are already structured and pass through."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def to_timestamp(value: Any) -> datetime:
    """
    Naive UTC timestamp from ISO 8601 text, a date, or epoch milliseconds.

    Aware inputs are converted to UTC before the zone is dropped.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValueError("debe ser una fecha válida") from None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError("debe ser una fecha válida") from None
    else:
        raise ValueError("debe ser una fecha válida")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
