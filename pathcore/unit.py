# pathcore/unit.py
"""
Units of length and conversion between them.
Enum values are millimetres per unit so a conversion ratio is a plain division.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .geom import Vector

USER_DIGITS = 3


class UnitOfLength(Enum):
    MILLIMETER = 1.0
    CENTIMETER = 10.0
    METER = 1000.0
    INCH = 25.4
    FOOT = 304.8

    @classmethod
    def from_name(cls, name: str) -> "UnitOfLength":
        """Look up a unit by case-insensitive name ("cm", "inch", "INCH")."""
        key = str(name).strip().upper()
        aliases = {"MM": "MILLIMETER", "CM": "CENTIMETER", "M": "METER",
                   "IN": "INCH", "FT": "FOOT"}
        key = aliases.get(key, key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown unit of length: {name!r}") from None


class UnitConverter:
    """Fixed ratio converter from unit A to unit B."""

    def __init__(self, from_uol: UnitOfLength, to_uol: UnitOfLength):
        self.from_uol = from_uol
        self.to_uol = to_uol
        self.ratio = from_uol.value / to_uol.value

    def from_a_to_b(self, value: Union[float, "Vector"]):
        if isinstance(value, (int, float)):
            return float(value) * self.ratio
        return value * self.ratio

    def from_b_to_a(self, value: Union[float, "Vector"]):
        if isinstance(value, (int, float)):
            return float(value) / self.ratio
        return value / self.ratio

    def convert_in_place(self, vec: "Vector") -> None:
        """Scale a vector (or control) without replacing the object."""
        vec.x = vec.x * self.ratio
        vec.y = vec.y * self.ratio


class Quantity:
    """A length value tagged with its unit."""

    def __init__(self, value: float, uol: UnitOfLength):
        self.value = float(value)
        self.uol = uol

    def to(self, uol: UnitOfLength) -> "Quantity":
        return Quantity(UnitConverter(self.uol, uol).from_a_to_b(self.value), uol)

    def to_user(self) -> float:
        return round(self.value, USER_DIGITS)

    def __repr__(self) -> str:
        return f"Quantity({self.value!r}, {self.uol.name})"
