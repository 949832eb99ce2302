# gst_engine/domain/models/money.py
"""
Integer money in paise.

All tax arithmetic is done on whole paise. ``Paise`` is an ``int`` so it
stores and serialises like one, but it refuses floats so that rupee/paise and
float rounding mistakes fail loudly instead of drifting.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

PAISE_PER_RUPEE = 100

_ONE = Decimal("1")


def _plain_int(value) -> int:
    """Return ``value`` as an int if it is integer-like, else NotImplemented."""
    if isinstance(value, (bool, float)):
        raise TypeError(f"Paise arithmetic with {type(value).__name__} is not allowed")
    if isinstance(value, int):
        return int(value)
    return NotImplemented


class Paise(int):
    """An amount of money in paise (1/100 rupee)."""

    __slots__ = ()

    def __new__(cls, value=0):
        if isinstance(value, (bool, float, str)):
            raise TypeError(f"Paise cannot be built from {type(value).__name__}: {value!r}")
        if isinstance(value, Decimal):
            if value != value.to_integral_value():
                raise ValueError(f"Paise must be a whole number, got {value}")
            value = int(value)
        return super().__new__(cls, value)

    # ---- construction / conversion ----

    @classmethod
    def from_rupees(cls, rupees) -> Paise:
        """Convert a rupee amount (Decimal, int or numeric string) to paise, half-up."""
        if isinstance(rupees, float):
            raise TypeError("Rupee amounts must be Decimal, int or str, not float")
        try:
            value = Decimal(str(rupees))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid rupee amount: {rupees!r}") from exc
        return round_half_up(value * PAISE_PER_RUPEE)

    def to_rupees(self) -> Decimal:
        return (Decimal(int(self)) / PAISE_PER_RUPEE).quantize(Decimal("0.01"))

    def format_inr(self) -> str:
        """Display form, e.g. ``₹77.20``."""
        return f"₹{self.to_rupees()}"

    def __repr__(self) -> str:
        return f"Paise({int(self)})"

    # ---- arithmetic (stays in Paise) ----

    def __add__(self, other):
        other = _plain_int(other)
        if other is NotImplemented:
            return NotImplemented
        return Paise(int(self) + other)

    __radd__ = __add__

    def __sub__(self, other):
        other = _plain_int(other)
        if other is NotImplemented:
            return NotImplemented
        return Paise(int(self) - other)

    def __rsub__(self, other):
        other = _plain_int(other)
        if other is NotImplemented:
            return NotImplemented
        return Paise(other - int(self))

    def __mul__(self, other):
        other = _plain_int(other)
        if other is NotImplemented:
            return NotImplemented
        return Paise(int(self) * other)

    __rmul__ = __mul__

    def __neg__(self):
        return Paise(-int(self))

    def __abs__(self):
        return Paise(abs(int(self)))


def round_half_up(value: Decimal) -> Paise:
    """Round a Decimal paise amount to whole paise, ties away from zero."""
    if isinstance(value, float):
        raise TypeError("round_half_up expects a Decimal, not float")
    if not isinstance(value, Decimal):
        value = Decimal(int(value))
    return Paise(value.quantize(_ONE, rounding=ROUND_HALF_UP))


def nearest_rupee(amount: int) -> Paise:
    """Round a paise amount to the nearest whole rupee (half-up at 50 paise)."""
    rupees = round_half_up(Decimal(int(amount)) / PAISE_PER_RUPEE)
    return Paise(int(rupees) * PAISE_PER_RUPEE)


def round_off(amount: int) -> Paise:
    """Adjustment that brings ``amount`` to the nearest rupee."""
    return nearest_rupee(amount) - int(amount)
