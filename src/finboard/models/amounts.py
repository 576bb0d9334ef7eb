"""
Ledger amounts with an explicit sign discipline.

Bank rows carry their sign at the source: expenses are negative, inflows are
positive. ``SignedAmount`` keeps that raw sign through every aggregation step;
``Magnitude`` is the non-negative figure shown to people. Converting between
the two is always explicit.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class SignedAmount:
    """A raw ledger value, sign preserved."""

    value: float = 0.0

    def __add__(self, other: SignedAmount) -> SignedAmount:
        if not isinstance(other, SignedAmount):
            return NotImplemented
        return SignedAmount(self.value + other.value)

    def __truediv__(self, divisor: int | float) -> SignedAmount:
        return SignedAmount(self.value / divisor)

    def __neg__(self) -> SignedAmount:
        return SignedAmount(-self.value)

    def __float__(self) -> float:
        return self.value

    def magnitude(self) -> Magnitude:
        return Magnitude(abs(self.value))

    @property
    def is_positive(self) -> bool:
        return self.value > 0

    @classmethod
    def total(cls, amounts: list[SignedAmount] | tuple[SignedAmount, ...]) -> SignedAmount:
        result = cls()
        for amount in amounts:
            result = result + amount
        return result


@dataclass(frozen=True, order=True)
class Magnitude:
    """A display amount. Never negative."""

    value: float = 0.0

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Magnitude cannot be negative: {self.value}")

    def __add__(self, other: Magnitude) -> Magnitude:
        if not isinstance(other, Magnitude):
            return NotImplemented
        return Magnitude(self.value + other.value)

    def __sub__(self, other: Magnitude) -> SignedAmount:
        if not isinstance(other, Magnitude):
            return NotImplemented
        return SignedAmount(self.value - other.value)

    def __truediv__(self, divisor: int | float) -> Magnitude:
        return Magnitude(self.value / divisor)

    def __float__(self) -> float:
        return self.value

    def share_of(self, whole: Magnitude) -> float:
        """Percentage of ``whole`` (0 when ``whole`` is zero)."""
        return (self.value / whole.value) * 100 if whole.value else 0.0
