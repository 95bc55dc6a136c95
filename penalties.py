"""
Late filing penalties, payment deadlines and interest on unpaid tax.

Deadlines
---------
Individuals file by 30 September and pay by 30 June of the year after
the tax year. Companies file and pay nine months after their financial
year end (eighteen for payment with a DDT10 exemption). The financial
year end is the last day of the chosen month in the calendar year after
the tax year.

Penalty policy
--------------
A return is late when it is submitted (or, if still unfiled, when
today falls) after the filing deadline. Any lateness is charged at
least the first tier. Whole months late pick the tier, with a tier's
limit inclusive. Returns filed on or before the deadline, and unfiled
returns whose deadline has not passed yet, carry no penalty.

Interest
--------
Interest is charged per month or part thereof under each rate regime
the overdue period touches. Every regime is charged on its full overlap
with the overdue period, never on sub-splits of it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

import config as cfg
from dates import add_months, last_day_of_month, months_between, parse_iso_date
from logging_config import setup_logger

logger = setup_logger(__name__)


# ─── Taxpayer profile & deadlines ────────────────────────────────────

@dataclass(frozen=True)
class TaxpayerProfile:
    """Who is filing and for which year.

    Individuals always have a December year end; any other month is
    replaced with 12.
    """

    taxpayer_type: str
    tax_year: int
    year_end_month: int = 12

    def __post_init__(self) -> None:
        if self.taxpayer_type not in cfg.TAXPAYER_TYPES:
            raise ValueError(f"Taxpayer type must be one of {', '.join(cfg.TAXPAYER_TYPES)}")
        if not 1 <= self.year_end_month <= 12:
            raise ValueError("Financial year end month must be 1-12")
        if self.taxpayer_type == "Individual" and self.year_end_month != 12:
            object.__setattr__(self, "year_end_month", 12)

    @property
    def is_corporate(self) -> bool:
        return self.taxpayer_type == "Corporate"

    @property
    def financial_year_end(self) -> date:
        """Last day of the year-end month, in the year after the tax year."""
        return last_day_of_month(self.tax_year + 1, self.year_end_month)


def filing_deadline(profile: TaxpayerProfile) -> date:
    if profile.is_corporate:
        return add_months(profile.financial_year_end, cfg.CORPORATE_FILING_MONTHS)
    month, day = cfg.INDIVIDUAL_FILING_DEADLINE
    return date(profile.tax_year + 1, month, day)


def payment_deadline(profile: TaxpayerProfile, ddt_exemption: bool = False) -> date:
    """Date the tax must be paid by; interest runs from here.

    The DDT10 exemption only extends corporate deadlines.
    """
    if profile.is_corporate:
        months = cfg.CORPORATE_PAYMENT_MONTHS_DDT10 if ddt_exemption else cfg.CORPORATE_PAYMENT_MONTHS
        return add_months(profile.financial_year_end, months)
    month, day = cfg.INDIVIDUAL_PAYMENT_DEADLINE
    return date(profile.tax_year + 1, month, day)


# ─── Penalty schedule ───────────────────────────────────────────────

@dataclass(frozen=True)
class PenaltyTier:
    """Fixed penalty for returns up to ``threshold_months`` late.

    ``threshold_months`` is ``None`` for the catch-all top tier.
    """

    threshold_months: Optional[int]
    amount: float
    label: str

    @property
    def open_ended(self) -> bool:
        return self.threshold_months is None


def _build_schedule(rows: Sequence[Tuple[Optional[int], float, str]]) -> Tuple[PenaltyTier, ...]:
    tiers = tuple(PenaltyTier(months, float(amount), label) for months, amount, label in rows)
    if not tiers[-1].open_ended or any(t.open_ended for t in tiers[:-1]):
        raise ValueError("Only the last penalty tier may be open-ended")
    limits = [t.threshold_months for t in tiers[:-1]]
    if limits != sorted(set(limits)):
        raise ValueError("Penalty tier limits must strictly increase")
    return tiers


PENALTY_SCHEDULES: Dict[str, Tuple[PenaltyTier, ...]] = {
    kind: _build_schedule(rows) for kind, rows in cfg.PENALTY_TIERS.items()
}


def penalty_tier(taxpayer_type: str, months_late: int) -> PenaltyTier:
    """First tier whose limit is at least *months_late*."""
    if months_late < 0:
        raise ValueError("Months late cannot be negative")
    schedule = PENALTY_SCHEDULES[taxpayer_type]
    for tier in schedule:
        if tier.open_ended or months_late <= tier.threshold_months:
            return tier
    return schedule[-1]


def penalty_for_months(taxpayer_type: str, months_late: int) -> float:
    return penalty_tier(taxpayer_type, months_late).amount


@dataclass
class PenaltyAssessment:
    deadline: date
    reference_date: date          # submission date, or today when unfiled
    filed: bool
    months_late: int
    tier: Optional[PenaltyTier]

    @property
    def is_late(self) -> bool:
        return self.tier is not None

    @property
    def amount(self) -> float:
        return self.tier.amount if self.tier else 0.0


def late_filing_penalty(
    profile: TaxpayerProfile,
    submitted: Optional[date],
    today: Optional[date] = None,
) -> PenaltyAssessment:
    """Assess the late filing penalty.

    Parameters
    ----------
    profile : TaxpayerProfile
        Taxpayer type, tax year and year end.
    submitted : date or None
        Submission date, or ``None`` if the return has not been filed.
    today : date, optional
        Reference date for unfiled returns. Defaults to today.
    """
    deadline = filing_deadline(profile)
    reference = submitted if submitted is not None else (today or date.today())

    if reference <= deadline:
        return PenaltyAssessment(deadline, reference, submitted is not None, 0, None)

    months_late = months_between(deadline, reference)
    tier = penalty_tier(profile.taxpayer_type, months_late)
    logger.debug("%s return %s months late: %s (%.2f)",
                 profile.taxpayer_type, months_late, tier.label, tier.amount)
    return PenaltyAssessment(deadline, reference, submitted is not None, months_late, tier)


# ─── Interest regimes ───────────────────────────────────────────────

@dataclass(frozen=True)
class InterestPeriod:
    start: date
    end: date
    monthly_rate: float
    label: str


INTEREST_PERIODS: Tuple[InterestPeriod, ...] = tuple(
    InterestPeriod(parse_iso_date(start), parse_iso_date(end), rate, label)
    for start, end, rate, label in cfg.INTEREST_PERIODS
)


@dataclass
class PeriodContribution:
    label: str
    start: date
    end: date
    days: int
    months: int
    rate: float
    amount: float


@dataclass
class InterestResult:
    total: float = 0.0
    breakdown: List[PeriodContribution] = field(default_factory=list)


def accrue_interest(
    amount: float,
    due_date: date,
    as_of: Optional[date] = None,
    periods: Sequence[InterestPeriod] = INTEREST_PERIODS,
) -> InterestResult:
    """Interest on *amount* left unpaid from *due_date* until *as_of*.

    Walks the rate regimes in order. For each regime overlapping the
    overdue window, the overlap's day count is turned into months with
    ``ceil(days / 30.44)`` and charged at that regime's monthly rate.

    Parameters
    ----------
    amount : float
        Outstanding tax.
    due_date : date
        Payment deadline.
    as_of : date, optional
        Date interest is computed to. Defaults to today.
    periods : sequence of InterestPeriod
        Chronological, non-overlapping rate regimes.

    Returns
    -------
    InterestResult
        Total interest and one breakdown row per regime charged.
    """
    as_of = as_of or date.today()
    if amount <= 0 or as_of <= due_date:
        return InterestResult()

    result = InterestResult()
    cursor = due_date
    for period in periods:
        if cursor >= as_of:
            break
        start = max(cursor, period.start)
        end = min(as_of, period.end)
        if start >= end:
            continue

        days = (end - start).days
        months = math.ceil(days / cfg.AVG_DAYS_PER_MONTH)
        charge = amount * period.monthly_rate * months
        result.breakdown.append(
            PeriodContribution(period.label, start, end, days, months, period.monthly_rate, charge)
        )
        result.total += charge
        cursor = end
        logger.debug("Interest %s: %d days -> %d months at %.4f = %.2f",
                     period.label, days, months, period.monthly_rate, charge)

    return result


# ─── End-to-end calculation ─────────────────────────────────────────

@dataclass(frozen=True)
class LateFilingInputs:
    """Answers to the penalties & interest questionnaire."""

    profile: TaxpayerProfile
    return_filed: bool
    submitted_date: Optional[date] = None
    has_outstanding: bool = False
    tax_amount: float = 0.0
    ddt_exemption: bool = False
    due_date: Optional[date] = None          # overrides the derived payment deadline
    interest_as_of: Optional[date] = None

    def __post_init__(self) -> None:
        if self.return_filed and self.submitted_date is None:
            raise ValueError("A submission date is required for a filed return")
        if self.tax_amount < 0:
            raise ValueError("Tax amount cannot be negative")
        if self.ddt_exemption and not self.profile.is_corporate:
            raise ValueError("The DDT10 exemption only applies to corporate taxpayers")
        if self.due_date and self.interest_as_of and self.interest_as_of < self.due_date:
            raise ValueError("Interest computation date should be after the due date")


@dataclass
class CalculationResult:
    filing_deadline: date
    payment_deadline: date
    due_date: date
    interest_as_of: date
    penalty: PenaltyAssessment
    interest: InterestResult
    outstanding: float

    @property
    def penalty_amount(self) -> float:
        return self.penalty.amount

    @property
    def interest_amount(self) -> float:
        return self.interest.total

    @property
    def total_payable(self) -> float:
        return self.outstanding + self.penalty_amount + self.interest_amount


def calculate_penalties_and_interest(
    inputs: LateFilingInputs,
    today: Optional[date] = None,
) -> CalculationResult:
    """Penalty, interest and total payable for one questionnaire."""
    today = today or date.today()
    profile = inputs.profile

    pay_by = payment_deadline(profile, inputs.ddt_exemption)
    due = inputs.due_date or pay_by
    as_of = inputs.interest_as_of or today

    penalty = late_filing_penalty(
        profile, inputs.submitted_date if inputs.return_filed else None, today
    )

    outstanding = inputs.tax_amount if inputs.has_outstanding else 0.0
    interest = accrue_interest(outstanding, due, as_of) if outstanding > 0 else InterestResult()

    logger.debug("%s %s: penalty=%.2f interest=%.2f outstanding=%.2f",
                profile.taxpayer_type, profile.tax_year, penalty.amount,
                interest.total, outstanding)
    return CalculationResult(
        filing_deadline=penalty.deadline,
        payment_deadline=pay_by,
        due_date=due,
        interest_as_of=as_of,
        penalty=penalty,
        interest=interest,
        outstanding=outstanding,
    )
