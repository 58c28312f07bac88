"""Byte sizes with binary units.

A ``ByteSize`` is always a whole, non-negative number of bytes. Converting
to KiB, MiB and so on only happens when a value is presented, so the
underlying integer is never rounded.
"""

import re
from enum import IntEnum
from fractions import Fraction

from pmon.errors import InvalidNumeral, InvalidUnit


class Unit(IntEnum):
    """Binary size units, valued in bytes.

    ``AUTO`` is a sentinel meaning "pick the best fitting unit when
    formatting"; it is not a unit of zero bytes.
    """

    AUTO = 0
    B = 1
    KIB = 1 << 10
    MIB = 1 << 20
    GIB = 1 << 30
    TIB = 1 << 40
    PIB = 1 << 50
    EIB = 1 << 60

    @property
    def suffix(self) -> str:
        """Display suffix, e.g. ``"MiB"``. Empty for ``AUTO``."""
        return _SUFFIXES[self]


_SUFFIXES = {
    Unit.AUTO: "",
    Unit.B: "B",
    Unit.KIB: "KiB",
    Unit.MIB: "MiB",
    Unit.GIB: "GiB",
    Unit.TIB: "TiB",
    Unit.PIB: "PiB",
    Unit.EIB: "EiB",
}

# Smallest to largest; AUTO is not part of the ladder.
LADDER: tuple[Unit, ...] = (
    Unit.B,
    Unit.KIB,
    Unit.MIB,
    Unit.GIB,
    Unit.TIB,
    Unit.PIB,
    Unit.EIB,
)

# "kb" and "mb" are binary here, not decimal.
_UNIT_SYMBOLS = {
    "": Unit.AUTO,
    "b": Unit.B,
    "k": Unit.KIB,
    "kb": Unit.KIB,
    "kib": Unit.KIB,
    "m": Unit.MIB,
    "mb": Unit.MIB,
    "mib": Unit.MIB,
    "g": Unit.GIB,
    "gb": Unit.GIB,
    "gib": Unit.GIB,
    "t": Unit.TIB,
    "tb": Unit.TIB,
    "tib": Unit.TIB,
    "p": Unit.PIB,
    "pb": Unit.PIB,
    "pib": Unit.PIB,
    "e": Unit.EIB,
    "eb": Unit.EIB,
    "eib": Unit.EIB,
}

# Largest value of the unsigned 64-bit counters the kernel reports.
MAX_BYTES = (1 << 64) - 1

_SIZE_RE = re.compile(r"^\s*([-+.0-9]*)\s*(.*?)\s*$", re.DOTALL)


def parse_unit(text: str) -> Unit:
    """
    Map a case-insensitive unit symbol to a ``Unit``.

    The empty string maps to ``Unit.AUTO``.

    Raises:
        InvalidUnit: If the symbol is not recognised.
    """
    try:
        return _UNIT_SYMBOLS[text.strip().lower()]
    except KeyError:
        raise InvalidUnit(text) from None


def parse_size(text: str) -> "ByteSize":
    """
    Parse text such as ``"512"``, ``"2MiB"`` or ``"1.5 gb"`` into a ``ByteSize``.

    A missing suffix means bytes. Fractional byte counts are truncated.

    Raises:
        InvalidNumeral: If the leading number is missing, malformed, negative
            or the size exceeds ``MAX_BYTES``.
        InvalidUnit: If the trailing suffix is not a known unit.
    """
    match = _SIZE_RE.match(text)
    numeral, suffix = match.group(1), match.group(2)
    try:
        amount = Fraction(numeral)
    except ValueError:
        raise InvalidNumeral(numeral, text) from None

    unit = parse_unit(suffix)
    if unit is Unit.AUTO:
        unit = Unit.B

    total = amount * int(unit)
    if total < 0 or total > MAX_BYTES:
        raise InvalidNumeral(numeral, text)
    return ByteSize(int(total))


def best_fit(value: int) -> Unit:
    """Largest unit for which ``value`` still has a nonzero integer part."""
    for unit, next_unit in zip(LADDER, LADDER[1:]):
        if value // next_unit == 0:
            return unit
    return LADDER[-1]


def to_unit(value: int, unit: Unit) -> float:
    """Convert a byte count to ``unit``. ``AUTO`` converts to the best fit."""
    if unit is Unit.AUTO:
        unit = best_fit(value)
    return value / int(unit)


def format_size(value: int, unit: Unit = Unit.AUTO) -> str:
    """
    Render a byte count for display.

    With ``Unit.AUTO`` the best fitting unit is chosen and the number is
    shown with up to 4 significant digits followed by the suffix
    (``"1MiB"``, ``"1.465MiB"``). With an explicit unit only the number is
    shown: as an integer when the conversion is exact, otherwise with
    3 decimals (``"1464.844"``).
    """
    if unit is Unit.AUTO:
        fit = best_fit(value)
        return f"{value / int(fit):.4g}{fit.suffix}"
    if value % unit == 0:
        return str(value // unit)
    return f"{value / int(unit):.3f}"


class ByteSize(int):
    """An unsigned, whole number of bytes, at most ``MAX_BYTES``."""

    __slots__ = ()

    def __new__(cls, value: int = 0) -> "ByteSize":
        value = int(value)
        if value < 0:
            raise ValueError(f"byte size cannot be negative: {value}")
        if value > MAX_BYTES:
            raise ValueError(f"byte size exceeds {MAX_BYTES}: {value}")
        return super().__new__(cls, value)

    @classmethod
    def parse(cls, text: str) -> "ByteSize":
        """Parse text such as ``"2MiB"``; see ``parse_size``."""
        return parse_size(text)

    def __repr__(self) -> str:
        return f"ByteSize({int(self)})"

    def __str__(self) -> str:
        return format_size(self, Unit.AUTO)

    def __add__(self, other):
        if not isinstance(other, int):
            return NotImplemented
        return ByteSize(int(self) + int(other))

    __radd__ = __add__

    def __sub__(self, other):
        if not isinstance(other, int):
            return NotImplemented
        return ByteSize(int(self) - int(other))

    def __mul__(self, other):
        if not isinstance(other, int):
            return NotImplemented
        return ByteSize(int(self) * int(other))

    __rmul__ = __mul__

    @property
    def suffix(self) -> str:
        """Suffix of the best fitting unit."""
        return best_fit(self).suffix

    def to_unit(self, unit: Unit) -> float:
        """This size expressed in ``unit``."""
        return to_unit(self, unit)

    def format(self, unit: Unit = Unit.AUTO) -> str:
        """This size rendered for display; see ``format_size``."""
        return format_size(self, unit)
