"""
Wire codec for transaction arguments and results.

Transaction arguments travel as strings. Decimal fields use a fixed number of
places with round-half-even, so a value survives the string round trip
unchanged once quantized. Only the router and the client use this module;
chaincode handlers work with typed values.
"""

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any, Callable

from ..schemas import LedgerBaseModel
from .errors import ValidationError

DEFAULT_PLACES = 6


def quantize(value: float | Decimal | str, places: int = DEFAULT_PLACES) -> Decimal:
    """Exact decimal form of a value at the wire precision."""
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{value!r} is not a decimal number")
    if not number.is_finite():
        raise ValidationError(f"{value!r} is not a finite number")
    try:
        return number.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_EVEN)
    except InvalidOperation:
        raise ValidationError(f"{value!r} has too many digits at {places} decimal places")


def parse_decimal(text: str, places: int = DEFAULT_PLACES) -> float:
    return float(quantize(text, places))


def format_decimal(value: float | Decimal, places: int = DEFAULT_PLACES) -> str:
    return f"{quantize(value, places):f}"


def parse_int(text: str) -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise ValidationError(f"{text!r} is not an integer")


def parse_id(text: str) -> str:
    """Identifiers must be non-empty."""
    if not text or not text.strip():
        raise ValidationError("identifier must not be empty")
    return text


def parse_text(text: str) -> str:
    return text


def decimal_arg(places: int) -> Callable[[str], float]:
    """Argument parser for a decimal field at the given precision."""

    def parse(text: str) -> float:
        return parse_decimal(text, places)

    return parse


def encode_result(result: Any) -> bytes:
    """Encode a handler result as a transaction response payload."""
    if result is None:
        return b""
    if isinstance(result, LedgerBaseModel):
        return result.to_bytes()
    if isinstance(result, list):
        return b"[" + b",".join(encode_result(item) for item in result) + b"]"
    if isinstance(result, bytes):
        return result
    if isinstance(result, (int, str)):
        return str(result).encode()
    raise TypeError(f"cannot encode result of type {type(result).__name__}")
