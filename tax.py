"""
Malta income tax, social security and rental tax calculations.

The bracket and SSC functions accept numpy arrays so a whole income
range can be evaluated at once (the report charts do this). Scalar
inputs work too and come back as 0-d arrays; wrap them in ``float``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

import config as cfg
from logging_config import setup_logger

logger = setup_logger(__name__)


class TaxTableError(ValueError):
    """No bracket table is published for the requested year/status."""


# ─── Bracket tables ──────────────────────────────────────────────────

@dataclass(frozen=True)
class TaxBracket:
    """One band of a progressive schedule in multiply-and-subtract form.

    Income in ``(lower, upper]`` is taxed as ``income * rate - subtract``.
    ``upper`` is ``None`` for the open-ended top band.
    """

    lower: float
    upper: Optional[float]
    rate: float
    subtract: float

    @property
    def open_ended(self) -> bool:
        return self.upper is None

    def label(self) -> str:
        if self.open_ended:
            return f"Over €{self.lower:,.0f}"
        if self.lower == 0:
            return f"Up to €{self.upper:,.0f}"
        return f"€{self.lower + 1:,.0f} - €{self.upper:,.0f}"


def _build_table(bands: Sequence[Tuple[Optional[float], float, float]]) -> Tuple[TaxBracket, ...]:
    """Turn ``(upper, rate, subtract)`` bands into a checked bracket table."""
    brackets: List[TaxBracket] = []
    lower = 0.0
    for i, (upper, rate, subtract) in enumerate(bands):
        last = i == len(bands) - 1
        if (upper is None) != last:
            raise ValueError("Only the last band of a table may be open-ended")
        if upper is not None and upper <= lower:
            raise ValueError(f"Band limits must increase: {upper} after {lower}")
        brackets.append(TaxBracket(float(lower), None if upper is None else float(upper),
                                   rate, float(subtract)))
        if upper is not None:
            lower = float(upper)
    return tuple(brackets)


BRACKET_TABLES: Dict[Tuple[int, str], Tuple[TaxBracket, ...]] = {
    key: _build_table(bands) for key, bands in cfg.RESIDENT_BRACKETS.items()
}
NON_RESIDENT_TABLE: Tuple[TaxBracket, ...] = _build_table(cfg.NON_RESIDENT_BRACKETS)


def resident_years(status: str) -> List[int]:
    """Tax years with a published resident table for *status*."""
    return sorted(year for (year, s) in BRACKET_TABLES if s == status)


def resident_statuses(year: int) -> List[str]:
    """Tax statuses with a published resident table for *year*."""
    return [s for s in cfg.TAX_STATUSES if (year, s) in BRACKET_TABLES]


def select_brackets(year: int, status: str, residency: str = "resident") -> Tuple[TaxBracket, ...]:
    """Pick the predefined bracket table for ``(year, status, residency)``.

    Non-residents use a single table regardless of year and status.

    Raises
    ------
    TaxTableError
        If no resident table exists for the year/status combination.
    """
    if residency not in cfg.RESIDENCIES:
        raise ValueError(f"Unknown residency {residency!r}")
    if residency == "non_resident":
        logger.debug("Using non-resident table for %s", year)
        return NON_RESIDENT_TABLE
    try:
        table = BRACKET_TABLES[(year, status)]
    except KeyError:
        years = resident_years(status)
        raise TaxTableError(
            f"No {cfg.TAX_STATUSES.get(status, status)!r} table for {year}"
            + (f"; available years: {', '.join(map(str, years))}" if years else "")
        ) from None
    logger.debug("Using %s table for %s", status, year)
    return table


def find_bracket(income: float, brackets: Sequence[TaxBracket]) -> TaxBracket:
    """Return the single bracket whose range contains *income*."""
    for b in brackets:
        if b.open_ended or income <= b.upper:
            return b
    return brackets[-1]


def bracket_tax(income: np.ndarray, brackets: Sequence[TaxBracket]) -> np.ndarray:
    """Progressive tax via the multiply-and-subtract shortcut.

    Each income is matched to the first band whose upper limit it does
    not exceed, then taxed as ``income * rate - subtract``. Results
    are clamped at zero, so zero and negative incomes pay nothing.

    Parameters
    ----------
    income : array_like
        Chargeable income.
    brackets : sequence of TaxBracket
        A table from :func:`select_brackets`.

    Returns
    -------
    np.ndarray
        Tax due, same shape as *income*.
    """
    x = np.asarray(income, dtype=float)
    flat = np.atleast_1d(x)

    tax = np.zeros_like(flat)
    assigned = np.zeros(flat.shape, dtype=bool)
    for b in brackets:
        in_band = ~assigned if b.open_ended else (~assigned & (flat <= b.upper))
        tax = np.where(in_band, flat * b.rate - b.subtract, tax)
        assigned |= in_band

    return np.maximum(tax, 0.0).reshape(x.shape)


# ─── Part-time income at the flat rate ──────────────────────────────

def part_time_split(amount: float, kind: str = "employment") -> Tuple[float, float]:
    """Split part-time income into its flat-taxed part and the excess.

    Income up to the category ceiling (10,000 for employment, 12,000
    for self-employment) pays the 10% flat rate. The excess is not
    taxed here; it joins the progressive chargeable income.

    Returns
    -------
    tuple
        ``(flat_tax, excess)``.
    """
    if kind not in cfg.PART_TIME_CEILINGS:
        raise ValueError(f"Unknown part-time type {kind!r}")
    if amount <= 0:
        return 0.0, 0.0
    ceiling = cfg.PART_TIME_CEILINGS[kind]
    flat_tax = min(amount, ceiling) * cfg.PART_TIME_FLAT_RATE
    excess = max(0.0, amount - ceiling)
    return float(flat_tax), float(excess)


# ─── Social Security Contributions ──────────────────────────────────

@dataclass(frozen=True)
class SSCRule:
    """Weekly Class 1 contribution rule for one worker category.

    Banded rules charge ``weekly_floor`` up to ``lower_threshold``,
    ``rate`` of weekly gross up to ``upper_threshold`` and
    ``weekly_ceiling`` above it. Rules without thresholds charge
    ``rate`` of weekly gross capped at ``weekly_ceiling``.
    """

    category: str
    rate: float
    weekly_floor: float
    weekly_ceiling: float
    lower_threshold: Optional[float] = None
    upper_threshold: Optional[float] = None

    @property
    def banded(self) -> bool:
        return self.lower_threshold is not None


def _build_ssc_rules() -> Dict[str, SSCRule]:
    rules = {cfg.SSC_EXEMPT: SSCRule(cfg.SSC_EXEMPT, 0.0, 0.0, 0.0)}
    for cat, cap in cfg.SSC_STUDENT_CAPS.items():
        rules[cat] = SSCRule(cat, cfg.SSC_RATE, 0.0, cap)
    for cat, (lower, upper, minimum, maximum) in cfg.SSC_EMPLOYED_BANDS.items():
        rules[cat] = SSCRule(cat, cfg.SSC_RATE, minimum, maximum, lower, upper)
    return rules


SSC_RULES: Dict[str, SSCRule] = _build_ssc_rules()


def ssc_rule(category: str) -> SSCRule:
    try:
        return SSC_RULES[category]
    except KeyError:
        raise ValueError(f"Unknown SSC category {category!r}") from None


def weekly_ssc(weekly_gross: np.ndarray, rule: SSCRule) -> np.ndarray:
    """Weekly contribution for each weekly gross wage under *rule*.

    Banded pieces are ``[0, lower]``, ``(lower, upper]`` and
    ``(upper, inf)``. The percentage band is kept within the floor and
    ceiling, since the published thresholds are rounded to the cent.
    """
    w = np.asarray(weekly_gross, dtype=float)
    if rule.banded:
        pct_band = np.clip(w * rule.rate, rule.weekly_floor, rule.weekly_ceiling)
        return np.where(
            w <= rule.lower_threshold,
            rule.weekly_floor,
            np.where(w <= rule.upper_threshold, pct_band, rule.weekly_ceiling),
        )
    return np.clip(w * rule.rate, rule.weekly_floor, rule.weekly_ceiling)


@dataclass
class SSCBreakdown:
    """SSC on an annual wage, with the band that applied."""

    category: str
    weekly_gross: float
    weekly_ssc: float
    annual_ssc: float
    band: str                    # exempt | minimum | percentage | maximum | capped

    @property
    def description(self) -> str:
        if self.band == "exempt":
            return "Exempt"
        if self.band == "percentage":
            return f"{cfg.SSC_RATE * 100:.0f}% of Weekly Gross"
        if self.band == "capped":
            return f"€{self.weekly_ssc:.2f} / week (Fixed Cap)"
        return f"€{self.weekly_ssc:.2f} / week ({self.band.title()})"


def ssc_breakdown(annual_gross: float, category: str = cfg.SSC_DEFAULT_CATEGORY) -> SSCBreakdown:
    """Annual SSC for *annual_gross*: weekly gross is annual / 52.

    Banded categories pay the weekly minimum on any wage up to the lower
    threshold, a salary of 0 included.
    """
    rule = ssc_rule(category)
    weekly_gross = annual_gross / cfg.WEEKS_PER_YEAR
    weekly = float(weekly_ssc(weekly_gross, rule))

    if category == cfg.SSC_EXEMPT:
        band = "exempt"
    elif rule.banded:
        if weekly_gross <= rule.lower_threshold:
            band = "minimum"
        elif weekly_gross <= rule.upper_threshold:
            band = "percentage"
        else:
            band = "maximum"
    else:
        band = "capped" if weekly_gross * rule.rate >= rule.weekly_ceiling else "percentage"

    return SSCBreakdown(
        category=category,
        weekly_gross=weekly_gross,
        weekly_ssc=weekly,
        annual_ssc=weekly * cfg.WEEKS_PER_YEAR,
        band=band,
    )


# ─── Personal income tax ────────────────────────────────────────────

@dataclass(frozen=True)
class PersonalTaxInputs:
    """Income and status answers for the personal tax calculators."""

    gross_salary: float
    bonuses: float = 0.0
    part_time_income: float = 0.0
    part_time_type: str = "employment"
    tax_status: str = "single"
    residency: str = "resident"
    ssc_category: str = cfg.SSC_DEFAULT_CATEGORY
    tax_year: int = cfg.DEFAULT_TAX_YEAR

    def __post_init__(self) -> None:
        for name in ("gross_salary", "bonuses", "part_time_income"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name.replace('_', ' ').capitalize()} cannot be negative")
        if self.part_time_type not in cfg.PART_TIME_CEILINGS:
            raise ValueError(f"Unknown part-time type {self.part_time_type!r}")
        if self.tax_status not in cfg.TAX_STATUSES:
            raise ValueError(f"Unknown tax status {self.tax_status!r}")
        if self.residency not in cfg.RESIDENCIES:
            raise ValueError(f"Unknown residency {self.residency!r}")
        if self.ssc_category not in SSC_RULES:
            raise ValueError(f"Unknown SSC category {self.ssc_category!r}")


@dataclass
class PersonalTaxResult:
    tax_year: int
    gross_income: float          # salary + bonuses + part-time
    chargeable_income: float
    main_tax: float              # progressive part
    part_time_tax: float         # flat-rate part
    total_tax: float
    ssc: SSCBreakdown
    gov_bonus: float
    net_income: float
    bracket: TaxBracket

    @property
    def effective_rate(self) -> float:
        if self.gross_income <= 0:
            return 0.0
        return (self.total_tax + self.ssc.annual_ssc) / self.gross_income


def personal_tax(inputs: PersonalTaxInputs) -> PersonalTaxResult:
    """Income tax, SSC and net income for one tax year.

    Raises
    ------
    TaxTableError
        If the status has no resident table for ``inputs.tax_year``.
    """
    brackets = select_brackets(inputs.tax_year, inputs.tax_status, inputs.residency)

    gov_bonus = cfg.GOV_BONUS if inputs.gross_salary > 0 else 0.0
    flat_tax, excess = part_time_split(inputs.part_time_income, inputs.part_time_type)
    chargeable = inputs.gross_salary + inputs.bonuses + excess
    if inputs.residency == "resident" and inputs.tax_year in cfg.GOV_BONUS_CHARGEABLE_YEARS:
        chargeable += gov_bonus

    main_tax = float(bracket_tax(chargeable, brackets))
    total_tax = main_tax + flat_tax
    ssc = ssc_breakdown(inputs.gross_salary, inputs.ssc_category)

    gross = inputs.gross_salary + inputs.bonuses + inputs.part_time_income
    net = gross + gov_bonus - total_tax - ssc.annual_ssc

    logger.debug("Personal tax %s/%s: chargeable=%.2f main=%.2f flat=%.2f",
                 inputs.tax_year, inputs.tax_status, chargeable, main_tax, flat_tax)
    return PersonalTaxResult(
        tax_year=inputs.tax_year,
        gross_income=gross,
        chargeable_income=chargeable,
        main_tax=main_tax,
        part_time_tax=flat_tax,
        total_tax=total_tax,
        ssc=ssc,
        gov_bonus=gov_bonus,
        net_income=net,
        bracket=find_bracket(chargeable, brackets),
    )


def personal_tax_projection(
    inputs: PersonalTaxInputs,
    years: Optional[Iterable[int]] = None,
) -> Dict[int, PersonalTaxResult]:
    """Run :func:`personal_tax` for several basis years.

    Defaults to every year with a resident table for the status (all
    years with data are the same table set for non-residents).
    """
    if years is None:
        years = resident_years(inputs.tax_status) or [inputs.tax_year]
    return {y: personal_tax(replace(inputs, tax_year=y)) for y in years}


def marginal_rate_breakdown(inputs: PersonalTaxInputs) -> Dict[str, float]:
    """Marginal and effective rates for one salary, using a 1 EUR delta.

    Returns
    -------
    dict
        Keys: ``'income_tax_pct'``, ``'ssc_pct'``,
        ``'total_marginal_pct'``, ``'effective_pct'``.
    """
    base = personal_tax(inputs)
    bumped = personal_tax(replace(inputs, gross_salary=inputs.gross_salary + 1.0))

    it_marginal = bumped.total_tax - base.total_tax
    ssc_marginal = bumped.ssc.annual_ssc - base.ssc.annual_ssc
    return {
        "income_tax_pct": round(it_marginal * 100, 2),
        "ssc_pct": round(ssc_marginal * 100, 2),
        "total_marginal_pct": round((it_marginal + ssc_marginal) * 100, 2),
        "effective_pct": round(base.effective_rate * 100, 2),
    }


# ─── Rental income ──────────────────────────────────────────────────

def round_half_up(value: float) -> float:
    """Round to whole euros, halves away from zero for positive values."""
    return float(math.floor(value + 0.5))


@dataclass(frozen=True)
class RentalInputs:
    rental_income: float
    interest_paid: float = 0.0
    ground_rent: float = 0.0
    licence_fees: float = 0.0
    final_tax_election: str = "no"      # yes | no | not_applicable

    def __post_init__(self) -> None:
        for name in ("rental_income", "interest_paid", "ground_rent", "licence_fees"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name.replace('_', ' ').capitalize()} cannot be negative")
        if self.final_tax_election not in cfg.RENTAL_ELECTIONS:
            raise ValueError(f"Unknown election {self.final_tax_election!r}")


@dataclass
class RentalResult:
    maintenance_allowance: float
    regular_taxable: float
    regular_tax: float
    final_taxable: float
    final_tax: float
    recommendation: Optional[str]       # regular | final | equal | opted_final | None


def rental_tax(inputs: RentalInputs) -> RentalResult:
    """Compare regular 35% tax on net rent with the 15% final tax on gross rent."""
    income = inputs.rental_income
    outgoings = inputs.ground_rent + inputs.licence_fees

    allowance = max(0.0, min(
        cfg.RENTAL_MAINTENANCE_ALLOWANCE * (income - outgoings),
        income - inputs.interest_paid - outgoings,
    ))
    regular_taxable = max(0.0, income - inputs.interest_paid - outgoings - allowance)
    regular = round_half_up(regular_taxable * cfg.RENTAL_REGULAR_RATE)
    final = round_half_up(income * cfg.RENTAL_FINAL_RATE)

    if not income or inputs.final_tax_election == "not_applicable":
        recommendation = None
    elif inputs.final_tax_election == "yes":
        recommendation = "opted_final"
    elif regular < final:
        recommendation = "regular"
    elif final < regular:
        recommendation = "final"
    else:
        recommendation = "equal"

    return RentalResult(
        maintenance_allowance=allowance,
        regular_taxable=regular_taxable,
        regular_tax=regular,
        final_taxable=income,
        final_tax=final,
        recommendation=recommendation,
    )
