"""
Tolerance comparison between computed and declared amounts.

Both values are rounded to cents before comparing, so binary float
artifacts from the parsing layer can never decide a verdict.
"""

from dataclasses import dataclass
from decimal import Decimal

from .calculator import round_money


@dataclass(frozen=True)
class Tolerance:
    """
    Acceptable deviation between two amounts.

    A value is within tolerance when it satisfies either configured bound.
    With no bound at all the amounts must match to the cent.
    """
    absolute: Decimal | None = None  # euros
    percent: Decimal | None = None

    def __post_init__(self) -> None:
        if self.absolute is not None and self.absolute < 0:
            raise ValueError(f"Absolute tolerance must be non-negative, got {self.absolute}")
        if self.percent is not None and self.percent < 0:
            raise ValueError(f"Percent tolerance must be non-negative, got {self.percent}")

    @classmethod
    def euros(cls, amount: Decimal | str | int) -> "Tolerance":
        return cls(absolute=Decimal(amount))

    @classmethod
    def percentage(cls, percent: Decimal | str | int) -> "Tolerance":
        return cls(percent=Decimal(percent))


@dataclass(frozen=True)
class Comparison:
    """Outcome of comparing a theoretical value with a declared one."""
    theoretical: Decimal
    declared: Decimal
    delta: Decimal           # declared - theoretical
    delta_percent: Decimal   # |delta| relative to the larger magnitude
    within_tolerance: bool

    @property
    def abs_delta(self) -> Decimal:
        return abs(self.delta)


def relative_deviation(first: Decimal, second: Decimal) -> Decimal:
    """
    Deviation between two amounts in percent of the larger magnitude.

    Symmetric in its arguments; zero when both amounts are zero.
    """
    base = max(abs(first), abs(second))
    if base == 0:
        return Decimal("0")
    return abs(first - second) / base * 100


def compare(theoretical: Decimal, declared: Decimal, tolerance: Tolerance) -> Comparison:
    """
    Compare a computed value against a declared one.

    Args:
        theoretical: Value recomputed by the engine
        declared: Value printed on the document
        tolerance: Absolute and/or percent bound

    Returns:
        Comparison with the signed delta, its percentage and the verdict
    """
    theoretical = round_money(theoretical)
    declared = round_money(declared)
    delta = declared - theoretical
    delta_percent = relative_deviation(theoretical, declared)

    if tolerance.absolute is None and tolerance.percent is None:
        within = delta == 0
    else:
        within_absolute = tolerance.absolute is not None and abs(delta) <= tolerance.absolute
        within_percent = tolerance.percent is not None and delta_percent <= tolerance.percent
        within = within_absolute or within_percent

    return Comparison(
        theoretical=theoretical,
        declared=declared,
        delta=delta,
        delta_percent=delta_percent.quantize(Decimal("0.01")),
        within_tolerance=within,
    )
