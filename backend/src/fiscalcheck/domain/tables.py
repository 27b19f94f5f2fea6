"""
Regulatory tables keyed by regulatory year.

Pure data: VAT rates, IRPEF brackets, contribution rates, deduction
formulas, bonus thresholds and CCNL minimum wages. Tables are loaded once at
import time and shared read-only by every validation call, so several
regulatory years can coexist in the same process.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class TaxBracket:
    """One progressive IRPEF bracket. `upper` is None for the last bracket."""
    lower: Decimal
    upper: Decimal | None
    rate: Decimal  # percent

    def __post_init__(self) -> None:
        if self.rate < 0:
            raise ValueError(f"Bracket rate must be non-negative, got {self.rate}")
        if self.upper is not None and self.upper <= self.lower:
            raise ValueError(f"Invalid bracket bounds: {self.lower} - {self.upper}")


@dataclass(frozen=True)
class DeductionTable:
    """
    Employment income deduction (detrazione lavoro dipendente).

    The base amount phases down linearly above `reference_income` and is
    zero above `max_income`.
    """
    base: Decimal
    reference_income: Decimal
    phase_out_rate: Decimal
    max_income: Decimal


@dataclass(frozen=True)
class ContributionRates:
    """INPS contribution rates, in percent of gross pay."""
    employee: Decimal
    employer: Decimal
    self_employed: Decimal
    flat_rate: Decimal


@dataclass(frozen=True)
class CcnlLevel:
    minimum_wage: Decimal  # monthly gross
    description: str


@dataclass(frozen=True)
class CcnlSector:
    """Collective labour agreement of one sector."""
    name: str
    levels: Mapping[str, CcnlLevel]
    max_overtime_hours: Decimal  # per year
    inps_rate: Decimal

    @property
    def monthly_overtime_cap(self) -> Decimal:
        return self.max_overtime_hours / 12

    def level(self, level: str | int | None) -> CcnlLevel | None:
        if level is None:
            return None
        return self.levels.get(str(level).strip().upper())


@dataclass(frozen=True)
class RegulatoryTables:
    """All constants in force for one regulatory year."""
    year: int
    vat_rates: frozenset[Decimal]
    agricultural_vat_rates: frozenset[Decimal]
    irpef_brackets: tuple[TaxBracket, ...]
    employment_deduction: DeductionTable
    contribution_rates: ContributionRates
    contribution_ceiling: Decimal
    low_income_bonus: Decimal
    low_income_bonus_ceiling: Decimal
    fringe_benefit_limit: Decimal
    fringe_benefit_limit_with_children: Decimal
    flat_rate_revenue_ceiling: Decimal
    flat_rate_substitute_tax_rate: Decimal
    cash_vat_turnover_ceiling: Decimal
    ccnl_sectors: Mapping[str, CcnlSector] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Brackets must be ascending, contiguous and end unbounded."""
        if not self.irpef_brackets:
            raise ValueError("At least one IRPEF bracket is required")
        previous_upper = Decimal("0")
        for bracket in self.irpef_brackets:
            if bracket.lower != previous_upper:
                raise ValueError(
                    f"Brackets must be contiguous: expected lower bound {previous_upper}, "
                    f"got {bracket.lower}"
                )
            if bracket.upper is None and bracket is not self.irpef_brackets[-1]:
                raise ValueError("Only the last bracket may be unbounded")
            previous_upper = bracket.upper if bracket.upper is not None else previous_upper
        if self.irpef_brackets[-1].upper is not None:
            raise ValueError("The last IRPEF bracket must be unbounded")

    def ccnl_sector(self, sector: str | None) -> CcnlSector | None:
        if not sector:
            return None
        return self.ccnl_sectors.get(sector.strip().lower())


def _d(value: str) -> Decimal:
    return Decimal(value)


def _levels(rows: dict[str | int, tuple[str, str]]) -> Mapping[str, CcnlLevel]:
    return MappingProxyType({
        str(key).upper(): CcnlLevel(minimum_wage=_d(minimum), description=description)
        for key, (minimum, description) in rows.items()
    })


CCNL_SECTORS: Mapping[str, CcnlSector] = MappingProxyType({
    "commercio": CcnlSector(
        name="Commercio e Terziario",
        levels=_levels({
            1: ("1200", "Livello 1° Super"),
            2: ("1350", "Livello 2°"),
            3: ("1500", "Livello 3°"),
            4: ("1750", "Livello 4°"),
            5: ("2100", "Livello 5°"),
            6: ("2500", "Livello 6°"),
            7: ("3200", "Livello 7° - Quadri"),
        }),
        max_overtime_hours=_d("250"),
        inps_rate=_d("9.19"),
    ),
    "metalmeccanico": CcnlSector(
        name="Metalmeccanici",
        levels=_levels({
            1: ("1400", "Operaio generico"),
            2: ("1550", "Operaio qualificato"),
            3: ("1750", "Operaio specializzato"),
            4: ("2200", "Impiegato"),
            5: ("2800", "Impiegato direttivo"),
            6: ("3500", "Quadro"),
        }),
        max_overtime_hours=_d("200"),
        inps_rate=_d("9.19"),
    ),
    "edilizia": CcnlSector(
        name="Edilizia",
        levels=_levels({
            1: ("1300", "Operaio comune"),
            2: ("1450", "Operaio qualificato"),
            3: ("1650", "Operaio specializzato"),
            4: ("2000", "Capo operaio"),
            5: ("2400", "Impiegato tecnico"),
        }),
        max_overtime_hours=_d("180"),
        inps_rate=_d("10.00"),
    ),
    "pubblico": CcnlSector(
        name="Pubblica Amministrazione",
        levels=_levels({
            "A1": ("1350", "Area A - posizione A1"),
            "A2": ("1500", "Area A - posizione A2"),
            "B1": ("1700", "Area B - posizione B1"),
            "B3": ("2000", "Area B - posizione B3"),
            "C1": ("2200", "Area C - posizione C1"),
            "C5": ("2800", "Area C - posizione C5"),
            "D1": ("3200", "Area D - posizione D1"),
            "D6": ("4200", "Area D - posizione D6"),
        }),
        max_overtime_hours=_d("120"),
        inps_rate=_d("9.19"),
    ),
})

STANDARD_VAT_RATES = frozenset(_d(rate) for rate in ("0", "4", "5", "10", "22"))

# Percentuali di compensazione for the special agricultural regime
AGRICULTURAL_VAT_RATES = frozenset(_d(rate) for rate in (
    "2", "4", "6.4", "7", "7.3", "7.5", "7.65", "7.95", "8.3", "8.8", "10", "12.3",
))

IRPEF_BRACKETS = (
    TaxBracket(lower=_d("0"), upper=_d("28000"), rate=_d("23")),
    TaxBracket(lower=_d("28000"), upper=_d("50000"), rate=_d("35")),
    TaxBracket(lower=_d("50000"), upper=None, rate=_d("43")),
)

TABLES_2024 = RegulatoryTables(
    year=2024,
    vat_rates=STANDARD_VAT_RATES,
    agricultural_vat_rates=AGRICULTURAL_VAT_RATES,
    irpef_brackets=IRPEF_BRACKETS,
    employment_deduction=DeductionTable(
        base=_d("1880"),
        reference_income=_d("28000"),
        phase_out_rate=_d("0.11"),
        max_income=_d("55000"),
    ),
    contribution_rates=ContributionRates(
        employee=_d("9.19"),
        employer=_d("23.81"),
        self_employed=_d("24.00"),
        flat_rate=_d("0"),
    ),
    contribution_ceiling=_d("119650"),
    low_income_bonus=_d("600"),
    low_income_bonus_ceiling=_d("28000"),
    fringe_benefit_limit=_d("1000"),
    fringe_benefit_limit_with_children=_d("2000"),
    flat_rate_revenue_ceiling=_d("85000"),
    flat_rate_substitute_tax_rate=_d("5"),
    cash_vat_turnover_ceiling=_d("2000000"),
    ccnl_sectors=CCNL_SECTORS,
)

TABLES_2025 = RegulatoryTables(
    year=2025,
    vat_rates=STANDARD_VAT_RATES,
    agricultural_vat_rates=AGRICULTURAL_VAT_RATES,
    irpef_brackets=IRPEF_BRACKETS,
    employment_deduction=DeductionTable(
        base=_d("1880"),
        reference_income=_d("28000"),
        phase_out_rate=_d("0.11"),
        max_income=_d("55000"),
    ),
    contribution_rates=ContributionRates(
        employee=_d("9.19"),
        employer=_d("23.81"),
        self_employed=_d("24.00"),
        flat_rate=_d("0"),
    ),
    contribution_ceiling=_d("120607"),
    low_income_bonus=_d("600"),
    low_income_bonus_ceiling=_d("28000"),
    fringe_benefit_limit=_d("1000"),
    fringe_benefit_limit_with_children=_d("2000"),
    flat_rate_revenue_ceiling=_d("85000"),
    flat_rate_substitute_tax_rate=_d("5"),
    cash_vat_turnover_ceiling=_d("2000000"),
    ccnl_sectors=CCNL_SECTORS,
)

TABLES_BY_YEAR: Mapping[int, RegulatoryTables] = MappingProxyType({
    tables.year: tables for tables in (TABLES_2024, TABLES_2025)
})

LATEST_YEAR = max(TABLES_BY_YEAR)


def tables_for_year(year: int | None) -> RegulatoryTables:
    """
    Return the tables in force for a regulatory year.

    Falls back to the most recent year not after `year`, or to the earliest
    known year for dates before any table. `None` selects the latest year.
    """
    if year is None:
        return TABLES_BY_YEAR[LATEST_YEAR]
    if year in TABLES_BY_YEAR:
        return TABLES_BY_YEAR[year]
    earlier = [known for known in TABLES_BY_YEAR if known < year]
    if earlier:
        return TABLES_BY_YEAR[max(earlier)]
    return TABLES_BY_YEAR[min(TABLES_BY_YEAR)]
