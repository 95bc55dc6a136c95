"""
Terminal front end for the Malta tax calculators.

Prompts go through the same form parsers as the web app, so validation
messages are identical in both front ends.
"""

from __future__ import annotations

import sys
from datetime import date
from typing import Callable, Dict, List, Optional

import config as cfg
import report
from audit import audit_conclusion, visible_questions
from forms import (
    FormErrors,
    parse_audit_form,
    parse_late_filing_form,
    parse_notice_form,
    parse_personal_tax_form,
    parse_rental_form,
)
from logging_config import setup_logger
from notice import calculate_notice_period
from penalties import calculate_penalties_and_interest
from tax import PersonalTaxResult, personal_tax, personal_tax_projection, rental_tax, resident_statuses

logger = setup_logger(__name__)


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt(val: float, decimals: int = 2) -> str:
    """Format number as €X,XXX.XX."""
    return f"€{val:,.{decimals}f}"


def pct(val: float, decimals: int = 1) -> str:
    return f"{val:.{decimals}f}%"


def fmt_date(d: Optional[date]) -> str:
    return f"{d:%d %B %Y}" if d else "-"


RECOMMENDATIONS = {
    "regular": "The regular 35% basis is cheaper",
    "final": "The 15% final tax is cheaper",
    "equal": "Both options cost the same",
    "opted_final": "You have opted for the 15% final tax",
}


# ═══════════════════════════════════════════════════════════════════
# Input collection (CLI)
# ═══════════════════════════════════════════════════════════════════

def _prompt(label: str, default: str = "") -> str:
    suffix = f" [{default}]" if default else ""
    raw = input(f"  {label}{suffix}: ").strip()
    return raw or default


def _prompt_choice(label: str, options: List[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip()
        if not raw:
            return default
        if raw in options:
            return raw
        print(f"    Choose from: {opts}")


def _prompt_keyed(label: str, options: Dict[str, str], default: str) -> str:
    """Numbered menu over ``{key: label}``; returns the chosen key."""
    keys = list(options)
    print(f"  {label}:")
    for i, key in enumerate(keys, 1):
        mark = "*" if key == default else " "
        print(f"   {mark}{i}. {options[key]}")
    while True:
        raw = input(f"  Choice [{keys.index(default) + 1}]: ").strip()
        if not raw:
            return default
        if raw.isdigit() and 1 <= int(raw) <= len(keys):
            return keys[int(raw) - 1]
        print(f"    Enter a number from 1 to {len(keys)}")


def _collect(ask: Callable[[], Dict[str, str]], parse: Callable[[Dict[str, str]], object]):
    """Ask until the answers parse, showing field errors in between."""
    while True:
        form = ask()
        try:
            return parse(form)
        except FormErrors as exc:
            logger.info("CLI validation failed: %s", exc)
            print("\n  Please fix the following:")
            for name, message in exc.errors.items():
                print(f"    - {name.replace('_', ' ')}: {message}")
            print()


# ═══════════════════════════════════════════════════════════════════
# Box-drawing CLI output
# ═══════════════════════════════════════════════════════════════════

W = 72  # box width (characters)
H = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{H * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{H * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 36) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{H * (W - 2)}╝"


def _wrap(text: str, width: int = W - 6) -> List[str]:
    lines, line = [], ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            lines.append(line)
            line = word
    if line:
        lines.append(line)
    return lines


def _print_section(title: str, rows: List[str]) -> None:
    """Print a titled box with content rows."""
    print()
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())


# ═══════════════════════════════════════════════════════════════════
# Calculators
# ═══════════════════════════════════════════════════════════════════

def _ask_personal_tax() -> Dict[str, str]:
    form = {
        "gross_salary": _prompt("Gross annual salary", "30000"),
        "bonuses": _prompt("Bonuses", "0"),
        "part_time_income": _prompt("Part-time income", "0"),
        "part_time_type": _prompt_choice("Part-time type", list(cfg.PART_TIME_CEILINGS), "employment"),
        "residency": _prompt_choice("Residency", list(cfg.RESIDENCIES), "resident"),
        "tax_year": _prompt("Tax year", str(cfg.DEFAULT_TAX_YEAR)),
    }
    year = int(form["tax_year"]) if form["tax_year"].isdigit() else cfg.DEFAULT_TAX_YEAR
    statuses = {k: cfg.TAX_STATUSES[k] for k in resident_statuses(year)} or cfg.TAX_STATUSES
    form["tax_status"] = _prompt_keyed("Tax status", statuses, next(iter(statuses)))
    form["ssc_category"] = _prompt_keyed("SSC category", cfg.SSC_CATEGORIES, cfg.SSC_DEFAULT_CATEGORY)
    return form


def _personal_rows(r: PersonalTaxResult) -> List[str]:
    rows = [
        _box_row("Gross income", fmt(r.gross_income)),
        _box_row("Chargeable income", fmt(r.chargeable_income)),
        _box_row("Tax band", f"{r.bracket.label()} @ {pct(r.bracket.rate * 100, 0)}"),
        _box_line(),
        _box_row("Income tax (progressive)", fmt(r.main_tax)),
        _box_row("Part-time tax (flat 10%)", fmt(r.part_time_tax)),
        _box_row("SSC", f"{fmt(r.ssc.annual_ssc)}  ({r.ssc.description})"),
    ]
    if r.gov_bonus:
        rows.append(_box_row("Government bonus", fmt(r.gov_bonus)))
    rows += [
        _box_line(),
        _box_row("Net income", fmt(r.net_income)),
        _box_row("Net monthly", fmt(r.net_income / 12)),
        _box_row("Effective rate (tax + SSC)", pct(r.effective_rate * 100)),
    ]
    return rows


def run_personal_tax() -> None:
    inputs = _collect(_ask_personal_tax, parse_personal_tax_form)
    result = personal_tax(inputs)
    _print_section(f"PERSONAL TAX {inputs.tax_year}", _personal_rows(result))

    if inputs.residency == "resident" and inputs.tax_year in cfg.GOV_BONUS_CHARGEABLE_YEARS:
        projection = personal_tax_projection(inputs)
        rows = [_box_row(str(y), f"net {fmt(r.net_income)}, tax {fmt(r.total_tax)}")
                for y, r in projection.items()]
        _print_section("BASIS YEAR COMPARISON", rows)


def _ask_rental() -> Dict[str, str]:
    return {
        "rental_income": _prompt("Gross rental income", "12000"),
        "interest_paid": _prompt("Interest paid on loan", "0"),
        "ground_rent": _prompt("Ground rent", "0"),
        "licence_fees": _prompt("Licence fees", "0"),
        "final_tax_election": _prompt_choice("Opted for 15% final tax?", list(cfg.RENTAL_ELECTIONS), "no"),
    }


def run_rental() -> None:
    inputs = _collect(_ask_rental, parse_rental_form)
    r = rental_tax(inputs)
    rows = [
        _box_row("Maintenance allowance (20%)", fmt(r.maintenance_allowance)),
        _box_row("Taxable (regular basis)", fmt(r.regular_taxable)),
        _box_row("Tax at 35%", fmt(r.regular_tax)),
        _box_line(),
        _box_row("Taxable (final basis)", fmt(r.final_taxable)),
        _box_row("Tax at 15% final", fmt(r.final_tax)),
    ]
    if r.recommendation:
        rows += [_box_line(), _box_line(RECOMMENDATIONS[r.recommendation])]
    _print_section("RENTAL INCOME TAX", rows)


def _ask_late_filing() -> Dict[str, str]:
    form = {
        "taxpayer_type": _prompt_choice("Taxpayer type", list(cfg.TAXPAYER_TYPES), "Individual"),
        "tax_year": _prompt("Tax year", str(date.today().year - 1)),
    }
    if form["taxpayer_type"] == "Corporate":
        form["year_end_month"] = _prompt("Financial year end month (1-12)", "12")
        form["ddt_exemption"] = _prompt_choice("DDT10 exemption?", ["yes", "no"], "no")
    form["return_filed"] = _prompt_choice("Has the return been filed?", ["yes", "no"], "no")
    if form["return_filed"] == "yes":
        form["submitted_date"] = _prompt("Submission date (YYYY-MM-DD)")
    form["has_outstanding"] = _prompt_choice("Is tax still outstanding?", ["yes", "no"], "no")
    if form["has_outstanding"] == "yes":
        form["tax_amount"] = _prompt("Outstanding amount")
        form["interest_as_of"] = _prompt("Compute interest to (YYYY-MM-DD, blank for today)")
    return form


def run_late_filing() -> None:
    inputs = _collect(_ask_late_filing, parse_late_filing_form)
    r = calculate_penalties_and_interest(inputs)
    rows = [
        _box_row("Filing deadline", fmt_date(r.filing_deadline)),
        _box_row("Payment deadline", fmt_date(r.payment_deadline)),
        _box_line(),
    ]
    if r.penalty.is_late:
        rows.append(_box_row("Months late", str(r.penalty.months_late)))
        rows.append(_box_row("Tier", r.penalty.tier.label))
    rows.append(_box_row("Late filing penalty", fmt(r.penalty_amount)))
    if r.outstanding:
        rows.append(_box_line())
        rows.append(_box_row("Outstanding tax", fmt(r.outstanding)))
        for row in r.interest.breakdown:
            rows.append(_box_row(f"  {row.label.split(' (')[0]}", f"{row.months} mo -> {fmt(row.amount)}"))
        rows.append(_box_row("Interest", fmt(r.interest_amount)))
    rows += [_box_line(), _box_row("Total payable", fmt(r.total_payable))]
    _print_section("LATE TAX PENALTIES & INTEREST", rows)

    if _prompt_choice("Save a PDF summary?", ["yes", "no"], "no") == "yes":
        path = report.generate_pdf(inputs, r, "late_tax_report.pdf")
        print(f"  Saved to {path}")


def _ask_notice() -> Dict[str, str]:
    return {
        "start_date": _prompt("Employment start date (YYYY-MM-DD)"),
        "notice_date": _prompt("Date notice is given (YYYY-MM-DD)", date.today().isoformat()),
    }


def run_notice() -> None:
    start, notice_date = _collect(_ask_notice, parse_notice_form)
    r = calculate_notice_period(start, notice_date)
    rows = [
        _box_row("Length of service", r.service_label),
        _box_row("Probation", "Yes" if r.in_probation else "No"),
        _box_row("Notice required", f"{r.required_weeks} weeks"),
        _box_row("Notice period starts", fmt_date(r.notice_starts)),
        _box_row("Last day of employment", fmt_date(r.last_day)),
    ]
    _print_section("NOTICE PERIOD", rows)


def run_audit() -> None:
    year = _collect(
        lambda: {"incorporation_year": _prompt("Year of incorporation", str(date.today().year))},
        parse_audit_form,
    ).incorporation_year
    form = {"incorporation_year": str(year)}
    asked = set()

    while True:
        answers = parse_audit_form(form)
        pending = [(f, q) for f, q in visible_questions(answers) if f not in asked]
        if not pending:
            break
        name, question = pending[0]
        asked.add(name)
        for i, line in enumerate(_wrap(question)):
            print(f"  {line}" if i else f"\n  {line}")
        if name == "rule3_first_year_end":
            form[name] = _prompt("Answer")
        else:
            form[name] = _prompt_choice("Answer", ["yes", "no"], "no")

    c = audit_conclusion(answers)
    rows = [_box_row("Outcome", c.outcome.label), _box_line()]
    rows += [_box_line(line) for line in _wrap(c.message)]
    if c.details:
        rows.append(_box_line())
        rows += [_box_line(line) for line in _wrap(c.details)]
    _print_section("AUDIT EXEMPTION", rows)


CALCULATORS = [
    ("Personal income tax", run_personal_tax),
    ("Rental income tax", run_rental),
    ("Late tax penalties & interest", run_late_filing),
    ("Notice period", run_notice),
    ("Audit exemption", run_audit),
]


def run_cli() -> None:
    """Menu loop over the calculators."""
    # Ensure box-drawing characters render on Windows
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  Malta Tax Calculators")
    print("=" * W)

    while True:
        print()
        for i, (title, _) in enumerate(CALCULATORS, 1):
            print(f"  {i}. {title}")
        print("  q. Quit")
        raw = input("\n  Select a calculator: ").strip().lower()
        if raw in ("q", "quit", ""):
            return
        if raw.isdigit() and 1 <= int(raw) <= len(CALCULATORS):
            title, run = CALCULATORS[int(raw) - 1]
            logger.info("CLI calculator: %s", title)
            print(f"\n  {title} (press Enter for defaults)\n")
            run()
        else:
            print(f"    Enter a number from 1 to {len(CALCULATORS)}")


if __name__ == "__main__":
    run_cli()
