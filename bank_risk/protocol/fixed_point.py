"""I80F48 fixed-point values and their Decimal counterparts.

Every monetary quantity in the engine is a ``decimal.Decimal``. On chain the
same numbers are stored as I80F48: a signed 128-bit integer whose low 48 bits
are fractional. Because 2^-48 has a finite decimal expansion, converting an
I80F48 to a Decimal is exact, and converting back recovers the same bits.

Arithmetic is done inside :func:`fixed_point_context`, a thread-local decimal
context wide enough that I80F48 values, and products at realistic
magnitudes, are not rounded.
"""

from __future__ import annotations

import typing
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, Context, Decimal, localcontext

import borsh_construct as borsh

from bank_risk.data.constants import (
    FIXED_POINT_PRECISION,
    I80F48_DIVISOR,
    I80F48_TOTAL_BITS,
    I80F48_TOTAL_BYTES,
)

FIXED_POINT_CONTEXT = Context(prec=FIXED_POINT_PRECISION, rounding=ROUND_HALF_EVEN)

_I128_MIN = -(2 ** (I80F48_TOTAL_BITS - 1))
_I128_MAX = 2 ** (I80F48_TOTAL_BITS - 1) - 1
_DIVISOR = Decimal(I80F48_DIVISOR)

ZERO = Decimal(0)
ONE = Decimal(1)


def fixed_point_context():
    """Context manager running Decimal arithmetic at fixed-point precision."""
    return localcontext(FIXED_POINT_CONTEXT)


def to_decimal(value: int | float | str | Decimal) -> Decimal:
    """Coerce a plain number to Decimal.

    Floats go through ``repr`` so ``0.1`` becomes ``Decimal("0.1")`` rather
    than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a numeric amount")
    if isinstance(value, float):
        return Decimal(repr(float(value)))
    return Decimal(value)


@dataclass(frozen=True)
class WrappedI80F48:
    """Raw I80F48 as decoded from an account: the signed 128-bit bit pattern."""

    layout: typing.ClassVar = borsh.CStruct("value" / borsh.I128)
    value: int

    def __post_init__(self) -> None:
        if not _I128_MIN <= self.value <= _I128_MAX:
            raise OverflowError(f"{self.value} does not fit in a signed 128-bit integer")

    @classmethod
    def from_bytes(cls, data: bytes) -> WrappedI80F48:
        """Decode the 16-byte little-endian two's-complement layout."""
        if len(data) != I80F48_TOTAL_BYTES:
            raise ValueError(f"I80F48 needs {I80F48_TOTAL_BYTES} bytes, got {len(data)}")
        return cls(cls.layout.parse(data).value)

    def to_bytes(self) -> bytes:
        return self.layout.build({"value": self.value})

    @classmethod
    def from_decimal(cls, value: int | float | str | Decimal) -> WrappedI80F48:
        return decimal_to_wrapped_i80f48(value)

    def to_decimal(self) -> Decimal:
        return wrapped_i80f48_to_decimal(self)


def wrapped_i80f48_to_decimal(wrapped: WrappedI80F48) -> Decimal:
    """Exact Decimal value of an I80F48."""
    with fixed_point_context():
        return Decimal(wrapped.value) / _DIVISOR


def decimal_to_wrapped_i80f48(value: int | float | str | Decimal) -> WrappedI80F48:
    """Nearest I80F48 to *value* (ties away from zero).

    Raises:
        OverflowError: if the value is outside the I80F48 range.
    """
    with fixed_point_context():
        scaled = (to_decimal(value) * _DIVISOR).to_integral_value(rounding=ROUND_HALF_UP)
    return WrappedI80F48(int(scaled))


def native_to_ui(amount: int | Decimal, decimals: int) -> Decimal:
    """Convert a native token amount to whole-token units."""
    with fixed_point_context():
        return to_decimal(amount) / (Decimal(10) ** decimals)


def ui_to_native(amount: int | float | str | Decimal, decimals: int) -> Decimal:
    """Convert whole-token units to a native amount, truncated to a whole native unit.

    The result is an integral Decimal, so it can be mixed with other amounts
    without leaving the fixed-point context.
    """
    with fixed_point_context():
        return (to_decimal(amount) * (Decimal(10) ** decimals)).to_integral_value(
            rounding=ROUND_DOWN
        )
