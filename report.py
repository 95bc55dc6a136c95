"""
Chart rendering and PDF summaries for the Malta tax calculators.

Provides:
  - Tax curve and basis-year comparison charts (personal tax)
  - Interest breakdown chart (penalties & interest)
  - One-page-plus-chart PDF summary of a penalties calculation (generate_pdf)
  - Base64-encoded chart images for web embedding
"""

from __future__ import annotations

import base64
import io
from typing import BinaryIO, Dict, List, Optional, Sequence, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.ticker import FuncFormatter
import numpy as np

import config as cfg
import tax
from penalties import CalculationResult, InterestResult, LateFilingInputs
from tax import PersonalTaxInputs, PersonalTaxResult, TaxBracket

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#0a101f"
CARD = "#131b2e"
TEXT = "#f1f5f9"
TEXT2 = "#cbd5e1"
INDIGO = "#818cf8"
EMERALD = "#34d399"
AMBER = "#fbbf24"
SLATE = "#94a3b8"
BORDER = "#1e293b"

A4W, A4H = 8.27, 11.69
WEB_W, WEB_H = 10, 6


# ═══════════════════════════════════════════════════════════════════
# Axis formatters
# ═══════════════════════════════════════════════════════════════════

def _eur_fmt(x, _):
    if abs(x) >= 1e6:
        return f"€{x / 1e6:.1f}M"
    if abs(x) >= 1e3:
        return f"€{x / 1e3:.0f}k"
    return f"€{x:.0f}"


def _pct_fmt(x, _):
    return f"{x:.0f}%"


EUR_FMT = FuncFormatter(_eur_fmt)
PCT_FMT = FuncFormatter(_pct_fmt)


# ═══════════════════════════════════════════════════════════════════
# Style helpers
# ═══════════════════════════════════════════════════════════════════

def _style(fig, *axes):
    """Apply dark theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=8)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, alpha=0.15, color=SLATE)


def _legend(ax, loc="upper left"):
    ax.legend(loc=loc, fontsize=8, facecolor=CARD, edgecolor=BORDER, labelcolor=TEXT)


def _eur(x: float) -> str:
    return f"€{x:,.2f}"


# ═══════════════════════════════════════════════════════════════════
# Tax curve (tax and effective rate against chargeable income)
# ═══════════════════════════════════════════════════════════════════

def tax_curve_chart(brackets: Sequence[TaxBracket], title: str,
                    max_income: float = 100_000,
                    marker: Optional[float] = None,
                    figsize=(WEB_W, WEB_H)) -> plt.Figure:
    """Plot a bracket table's tax and effective rate.

    Band limits are drawn as dotted lines; *marker* highlights one
    chargeable income (usually the user's).
    """
    if marker is not None:
        max_income = max(max_income, marker * 1.25)
    income = np.linspace(0, max_income, 400)
    due = tax.bracket_tax(income, brackets)
    eff = np.divide(due, income, out=np.zeros_like(due), where=income > 0) * 100

    fig, ax = plt.subplots(figsize=figsize)
    ax2 = ax.twinx()
    _style(fig, ax, ax2)

    ax.plot(income, due, color=INDIGO, linewidth=2.2, label="Income tax")
    ax2.plot(income, eff, color=EMERALD, linewidth=1.6, linestyle="--", label="Effective rate")

    for b in brackets:
        if not b.open_ended and b.upper < max_income:
            ax.axvline(b.upper, color=SLATE, linestyle=":", linewidth=0.8, alpha=0.6)
    if marker is not None:
        marker_tax = float(tax.bracket_tax(marker, brackets))
        ax.scatter([marker], [marker_tax], color=AMBER, zorder=5, s=40,
                   label=f"You: {_eur(marker_tax)}")

    ax.set_title(title, fontsize=12, fontweight="bold")
    ax.set_xlabel("Chargeable income")
    ax.set_ylabel("Tax due")
    ax2.set_ylabel("Effective rate")
    ax.xaxis.set_major_formatter(EUR_FMT)
    ax.yaxis.set_major_formatter(EUR_FMT)
    ax2.yaxis.set_major_formatter(PCT_FMT)
    ax2.set_ylim(0, 40)
    ax2.grid(False)
    _legend(ax)
    fig.tight_layout()
    return fig


# ═══════════════════════════════════════════════════════════════════
# Basis-year comparison (stacked tax / SSC / net)
# ═══════════════════════════════════════════════════════════════════

def projection_chart(projection: Dict[int, PersonalTaxResult],
                     figsize=(WEB_W, WEB_H)) -> plt.Figure:
    years = sorted(projection)
    labels = [str(y) for y in years]
    tax_due = np.array([projection[y].total_tax for y in years])
    ssc = np.array([projection[y].ssc.annual_ssc for y in years])
    net = np.array([projection[y].net_income for y in years])

    fig, ax = plt.subplots(figsize=figsize)
    _style(fig, ax)
    ax.bar(labels, net, color=EMERALD, label="Net income")
    ax.bar(labels, tax_due, bottom=net, color=INDIGO, label="Income tax")
    ax.bar(labels, ssc, bottom=net + tax_due, color=AMBER, label="SSC")

    for i, y in enumerate(years):
        ax.text(i, net[i] / 2, _eur(net[i]), ha="center", va="center",
                fontsize=8, color=BG, fontweight="bold")

    ax.set_title("Net income by basis year", fontsize=12, fontweight="bold")
    ax.yaxis.set_major_formatter(EUR_FMT)
    _legend(ax, loc="lower right")
    fig.tight_layout()
    return fig


# ═══════════════════════════════════════════════════════════════════
# Interest breakdown (one bar per rate regime)
# ═══════════════════════════════════════════════════════════════════

def interest_breakdown_chart(interest: InterestResult,
                             figsize=(WEB_W, WEB_H)) -> plt.Figure:
    fig, ax = plt.subplots(figsize=figsize)
    _style(fig, ax)

    if not interest.breakdown:
        ax.text(0.5, 0.5, "No interest due", ha="center", va="center",
                transform=ax.transAxes, color=SLATE, fontsize=12)
        ax.set_xticks([])
        ax.set_yticks([])
        return fig

    labels = [row.label.split(" (")[0] for row in interest.breakdown]
    amounts = [row.amount for row in interest.breakdown]
    bars = ax.barh(labels, amounts, color=INDIGO)
    ax.invert_yaxis()
    for bar, row in zip(bars, interest.breakdown):
        ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2,
                f"  {_eur(row.amount)}  ({row.months} mo @ {row.rate * 100:.2f}%)",
                va="center", fontsize=8, color=TEXT2)

    ax.set_title(f"Interest by rate period (total {_eur(interest.total)})",
                 fontsize=12, fontweight="bold")
    ax.xaxis.set_major_formatter(EUR_FMT)
    ax.set_xlim(0, max(amounts) * 1.6)
    fig.tight_layout()
    return fig


# ═══════════════════════════════════════════════════════════════════
# Penalties summary page (text only, dark background)
# ═══════════════════════════════════════════════════════════════════

def _summary_page(inputs: LateFilingInputs, result: CalculationResult) -> plt.Figure:
    fig = plt.figure(figsize=(A4W, A4H))
    fig.patch.set_facecolor(BG)
    profile = inputs.profile

    fig.text(0.50, 0.93, "Late Tax Penalties & Interest",
             ha="center", fontsize=18, color=TEXT, fontweight="bold")
    fig.text(0.50, 0.91, f"{profile.taxpayer_type} return, tax year {profile.tax_year}",
             ha="center", fontsize=11, color=TEXT2)

    y = 0.85
    fig.text(0.08, y, "Deadlines", fontsize=13, color=TEXT, fontweight="bold")
    y -= 0.03
    lines = [
        f"Filing deadline: {result.filing_deadline:%d %B %Y}",
        f"Payment deadline: {result.payment_deadline:%d %B %Y}",
        f"Interest runs from {result.due_date:%d %B %Y} to {result.interest_as_of:%d %B %Y}",
    ]
    if profile.is_corporate:
        lines.insert(0, f"Financial year end: {profile.financial_year_end:%d %B %Y}"
                        + ("  |  DDT10 exemption" if inputs.ddt_exemption else ""))
    for line in lines:
        fig.text(0.10, y, line, fontsize=9.5, color=TEXT2)
        y -= 0.024

    y -= 0.02
    fig.text(0.08, y, "Late filing penalty", fontsize=13, color=AMBER, fontweight="bold")
    y -= 0.03
    penalty = result.penalty
    if penalty.is_late:
        status = "Filed" if penalty.filed else "Not filed yet"
        fig.text(0.10, y, f"{status}: {penalty.months_late} months late ({penalty.tier.label})",
                 fontsize=9.5, color=TEXT2)
    else:
        fig.text(0.10, y, "No late filing penalty", fontsize=9.5, color=TEXT2)
    y -= 0.024
    fig.text(0.10, y, f"Penalty: {_eur(penalty.amount)}", fontsize=10, color=AMBER, fontweight="bold")

    y -= 0.045
    fig.text(0.08, y, "Interest on unpaid tax", fontsize=13, color=INDIGO, fontweight="bold")
    y -= 0.03
    fig.text(0.10, y, f"Outstanding tax: {_eur(result.outstanding)}", fontsize=9.5, color=TEXT2)
    y -= 0.024
    for row in result.interest.breakdown:
        fig.text(0.12, y, f"{row.label}: {row.days} days, {row.months} months -> {_eur(row.amount)}",
                 fontsize=8.5, color=TEXT2)
        y -= 0.021
    fig.text(0.10, y, f"Interest: {_eur(result.interest_amount)}",
             fontsize=10, color=INDIGO, fontweight="bold")

    y -= 0.05
    fig.text(0.08, y, f"Total payable: {_eur(result.total_payable)}",
             fontsize=14, color=EMERALD, fontweight="bold")

    fig.text(0.50, 0.03,
             "Estimate only. Confirm penalties and interest with the Commissioner for Tax and Customs.",
             ha="center", fontsize=8, color=SLATE, style="italic")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def figure_to_base64(fig: plt.Figure) -> str:
    """Convert a matplotlib figure to a base64-encoded PNG string."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor(),
                dpi=110, bbox_inches="tight")
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode()
    buf.close()
    return b64


def generate_pdf(
    inputs: LateFilingInputs,
    result: CalculationResult,
    out: Union[str, BinaryIO] = "late_tax_report.pdf",
) -> Union[str, BinaryIO]:
    """Write the penalties & interest summary to *out* (path or binary file)."""
    pages = [_summary_page(inputs, result)]
    if result.interest.breakdown:
        pages.append(interest_breakdown_chart(result.interest, figsize=(A4W, A4H * 0.5)))

    with PdfPages(out) as pdf:
        for fig in pages:
            pdf.savefig(fig, facecolor=fig.get_facecolor())
    for fig in pages:
        plt.close(fig)
    return out


def personal_tax_charts(inputs: PersonalTaxInputs, result: PersonalTaxResult,
                        projection: Optional[Dict[int, PersonalTaxResult]] = None) -> List[str]:
    """Base64 PNGs for the personal tax page.

    [0] Tax curve for the table used, with the user's income marked
    [1] Basis-year comparison, when a projection is given
    """
    brackets = tax.select_brackets(inputs.tax_year, inputs.tax_status, inputs.residency)
    if inputs.residency == "non_resident":
        title = "Non-resident rates"
    else:
        title = f"{cfg.TAX_STATUSES[inputs.tax_status]} rates, {inputs.tax_year}"
    figs = [tax_curve_chart(brackets, title, marker=result.chargeable_income)]
    if projection and len(projection) > 1:
        figs.append(projection_chart(projection))

    images = [figure_to_base64(f) for f in figs]
    for f in figs:
        plt.close(f)
    return images


def penalty_charts(result: CalculationResult) -> List[str]:
    """Base64 PNGs for the penalties page: the interest breakdown, if any."""
    if not result.interest.breakdown:
        return []
    fig = interest_breakdown_chart(result.interest)
    image = figure_to_base64(fig)
    plt.close(fig)
    return [image]
