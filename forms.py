"""
Form parsing and per-field validation for the calculator front ends.

Each ``parse_*_form`` takes a mapping of raw strings (a Flask
``request.form`` or answers collected by the CLI) and returns the
calculator's input dataclass. Problems are collected per field and
raised together as :class:`FormErrors`.
"""

from __future__ import annotations

import math
from datetime import date
from typing import Dict, Mapping, Optional, Tuple

import config as cfg
from audit import ANSWER_FIELDS, AuditAnswers
from dates import parse_iso_date
from penalties import LateFilingInputs, TaxpayerProfile, payment_deadline
from tax import BRACKET_TABLES, PersonalTaxInputs, RentalInputs, resident_years


class FormErrors(ValueError):
    """One or more fields failed validation.

    ``errors`` maps field name to a message fit for display.
    """

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


# ─── Field parsers ───────────────────────────────────────────────────

def _parse_currency(s: str) -> float:
    """``'€1,234.50'`` -> ``1234.5``.

    Raises ``ValueError`` on junk, including ``nan``, ``inf`` and values
    that overflow to infinity.
    """
    value = float(s.replace("€", "").replace(",", "").replace(" ", ""))
    if not math.isfinite(value):
        raise ValueError(f"Not a finite amount: {s!r}")
    return value


def _amount(form: Mapping[str, str], name: str, errors: Dict[str, str],
            default: float = 0.0, required: bool = False) -> float:
    raw = (form.get(name) or "").strip()
    if not raw:
        if required:
            errors[name] = "This field is required"
        return default
    try:
        value = _parse_currency(raw)
    except ValueError:
        errors[name] = "Please enter a valid number"
        return default
    if value < 0:
        errors[name] = "Amount cannot be negative"
        return default
    return value


def _integer(form: Mapping[str, str], name: str, errors: Dict[str, str],
             lo: int, hi: int, default: Optional[int] = None) -> Optional[int]:
    raw = (form.get(name) or "").strip()
    if not raw:
        if default is None:
            errors[name] = "This field is required"
        return default
    try:
        value = int(raw)
    except ValueError:
        errors[name] = "Please enter a whole number"
        return default
    if not lo <= value <= hi:
        errors[name] = f"Please enter a value between {lo} and {hi}"
        return default
    return value


def _date(form: Mapping[str, str], name: str, errors: Dict[str, str],
          required: bool = True) -> Optional[date]:
    raw = (form.get(name) or "").strip()
    if not raw:
        if required:
            errors[name] = "This field is required"
        return None
    try:
        return parse_iso_date(raw)
    except ValueError:
        errors[name] = "Please enter a valid date (YYYY-MM-DD)"
        return None


def _yes_no(form: Mapping[str, str], name: str) -> Optional[bool]:
    """``'yes'``/``'no'`` (any case) to a bool; anything else is unanswered."""
    raw = (form.get(name) or "").strip().lower()
    if raw in ("yes", "y", "true", "1"):
        return True
    if raw in ("no", "n", "false", "0"):
        return False
    return None


def _choice(form: Mapping[str, str], name: str, options, errors: Dict[str, str],
            default: str) -> str:
    value = (form.get(name) or default).strip()
    if value not in options:
        errors[name] = "Please select a valid option"
        return default
    return value


def _month(form: Mapping[str, str], name: str, errors: Dict[str, str]) -> int:
    """Month as a number (``'6'``) or an English name (``'June'``)."""
    raw = (form.get(name) or "12").strip()
    if raw.isdigit() and 1 <= int(raw) <= 12:
        return int(raw)
    names = [m.lower() for m in cfg.MONTHS]
    if raw.lower() in names:
        return names.index(raw.lower()) + 1
    errors[name] = "Please select a month"
    return 12


# ─── Personal tax ────────────────────────────────────────────────────

def parse_personal_tax_form(form: Mapping[str, str]) -> PersonalTaxInputs:
    errors: Dict[str, str] = {}
    salary = _amount(form, "gross_salary", errors, required=True)
    bonuses = _amount(form, "bonuses", errors)
    part_time = _amount(form, "part_time_income", errors)
    part_time_type = _choice(form, "part_time_type", cfg.PART_TIME_CEILINGS, errors, "employment")
    status = _choice(form, "tax_status", cfg.TAX_STATUSES, errors, "single")
    residency = _choice(form, "residency", cfg.RESIDENCIES, errors, "resident")
    ssc_category = _choice(form, "ssc_category", cfg.SSC_CATEGORIES, errors, cfg.SSC_DEFAULT_CATEGORY)
    year = _integer(form, "tax_year", errors, 1999, 2099, default=cfg.DEFAULT_TAX_YEAR)

    if "tax_status" not in errors and "tax_year" not in errors and residency == "resident":
        if (year, status) not in BRACKET_TABLES:
            years = resident_years(status)
            errors["tax_year"] = (
                f"No {cfg.TAX_STATUSES[status]} table for {year}"
                + (f"; choose {', '.join(map(str, years))}" if years else "")
            )

    if errors:
        raise FormErrors(errors)
    return PersonalTaxInputs(
        gross_salary=salary,
        bonuses=bonuses,
        part_time_income=part_time,
        part_time_type=part_time_type,
        tax_status=status,
        residency=residency,
        ssc_category=ssc_category,
        tax_year=year,
    )


# ─── Rental income ───────────────────────────────────────────────────

def parse_rental_form(form: Mapping[str, str]) -> RentalInputs:
    errors: Dict[str, str] = {}
    inputs = dict(
        rental_income=_amount(form, "rental_income", errors, required=True),
        interest_paid=_amount(form, "interest_paid", errors),
        ground_rent=_amount(form, "ground_rent", errors),
        licence_fees=_amount(form, "licence_fees", errors),
        final_tax_election=_choice(form, "final_tax_election", cfg.RENTAL_ELECTIONS, errors, "no"),
    )
    if errors:
        raise FormErrors(errors)
    return RentalInputs(**inputs)


# ─── Penalties & interest ────────────────────────────────────────────

def parse_late_filing_form(form: Mapping[str, str], today: Optional[date] = None) -> LateFilingInputs:
    """Validate the penalties & interest questionnaire.

    Checks the tax year range, date formats, that the submission date is
    not in the future, and that interest is not computed to a date
    before the tax fell due.
    """
    today = today or date.today()
    errors: Dict[str, str] = {}

    taxpayer_type = _choice(form, "taxpayer_type", cfg.TAXPAYER_TYPES, errors, "Individual")
    tax_year = _integer(form, "tax_year", errors, cfg.MIN_FILING_TAX_YEAR, today.year)
    month = _month(form, "year_end_month", errors) if taxpayer_type == "Corporate" else 12

    return_filed = _yes_no(form, "return_filed")
    if return_filed is None:
        errors["return_filed"] = "Please say whether the return was filed"
    submitted = None
    if return_filed:
        submitted = _date(form, "submitted_date", errors)
        if submitted and submitted > today:
            errors["submitted_date"] = "Submission date cannot be in the future"

    has_outstanding = bool(_yes_no(form, "has_outstanding"))
    amount = _amount(form, "tax_amount", errors, required=has_outstanding) if has_outstanding else 0.0
    ddt = taxpayer_type == "Corporate" and bool(_yes_no(form, "ddt_exemption"))
    due_override = _date(form, "due_date", errors, required=False)
    as_of = _date(form, "interest_as_of", errors, required=False)

    if errors:
        raise FormErrors(errors)

    profile = TaxpayerProfile(taxpayer_type, tax_year, month)
    due = due_override or payment_deadline(profile, ddt)
    if has_outstanding and as_of and as_of < due:
        raise FormErrors({"interest_as_of": "Interest computation date should be after the due date"})

    return LateFilingInputs(
        profile=profile,
        return_filed=bool(return_filed),
        submitted_date=submitted,
        has_outstanding=has_outstanding,
        tax_amount=amount,
        ddt_exemption=ddt,
        due_date=due_override,
        interest_as_of=as_of,
    )


# ─── Notice period ───────────────────────────────────────────────────

def parse_notice_form(form: Mapping[str, str], today: Optional[date] = None) -> Tuple[date, date]:
    """Return ``(start_date, notice_date)`` once both are valid."""
    today = today or date.today()
    errors: Dict[str, str] = {}
    start = _date(form, "start_date", errors)
    notice = _date(form, "notice_date", errors)

    if start and start > today:
        errors["start_date"] = "Start date cannot be in the future"
    if start and notice and notice <= start:
        errors["notice_date"] = "Notice date must be after the start date"

    if errors:
        raise FormErrors(errors)
    return start, notice


# ─── Audit exemption ─────────────────────────────────────────────────

def parse_audit_form(form: Mapping[str, str], today: Optional[date] = None) -> AuditAnswers:
    """Build :class:`AuditAnswers`; unanswered questions stay ``None``."""
    today = today or date.today()
    errors: Dict[str, str] = {}

    year = None
    if (form.get("incorporation_year") or "").strip():
        year = _integer(form, "incorporation_year", errors, cfg.MIN_INCORPORATION_YEAR, today.year)
    if errors:
        raise FormErrors(errors)

    answers = {"incorporation_year": year,
               "rule3_first_year_end": (form.get("rule3_first_year_end") or "").strip()}
    for name in ANSWER_FIELDS:
        if name not in answers:
            answers[name] = _yes_no(form, name)
    return AuditAnswers(**answers)
