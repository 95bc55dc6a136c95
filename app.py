"""
Flask web application for the Malta tax calculators.

Single-file app using render_template_string. Run via ``python main.py``
which starts the dev server on localhost:5000.
"""

from __future__ import annotations

import io
from datetime import date
from typing import Any, Dict

from flask import Flask, render_template_string, request, send_file

import config as cfg
import report
from audit import audit_conclusion, visible_questions
from cli import RECOMMENDATIONS, fmt, fmt_date, pct
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
from tax import personal_tax, personal_tax_projection, rental_tax

logger = setup_logger(__name__)

app = Flask(__name__)

CALCULATORS = [
    ("personal_tax_page", "Personal Income Tax",
     "Income tax, SSC and net pay for 2025 and the 2026-2028 basis years."),
    ("rental_page", "Rental Income Tax",
     "Compare the 35% regular basis with the 15% final tax on rent."),
    ("late_filing_page", "Late Tax Penalties & Interest",
     "Late filing penalties and interest on unpaid tax."),
    ("notice_page", "Notice Period",
     "Statutory notice owed when an employment ends."),
    ("audit_page", "Audit Exemption",
     "Whether a company needs an audit, a review report or neither."),
]


# ═══════════════════════════════════════════════════════════════════
# HTML Template
# ═══════════════════════════════════════════════════════════════════

HTML_TEMPLATE = r"""
{% macro field(name, label, type="text", placeholder="", default="") -%}
<div class="form-group">
  <label for="{{ name }}">{{ label }}</label>
  <input type="{{ type }}" id="{{ name }}" name="{{ name }}" placeholder="{{ placeholder }}"
         value="{{ form.get(name, default) }}" class="{{ 'invalid' if errors.get(name) }}">
  {% if errors.get(name) %}<span class="field-error">{{ errors[name] }}</span>{% endif %}
</div>
{%- endmacro %}
{% macro select(name, label, options, default="", submit=False) -%}
<div class="form-group">
  <label for="{{ name }}">{{ label }}</label>
  <select id="{{ name }}" name="{{ name }}" {% if submit %}onchange="this.form.submit()"{% endif %}>
    {% for value, text in options %}
    <option value="{{ value }}" {{ 'selected' if (form.get(name) or default) == value|string }}>{{ text }}</option>
    {% endfor %}
  </select>
  {% if errors.get(name) %}<span class="field-error">{{ errors[name] }}</span>{% endif %}
</div>
{%- endmacro %}
{% macro row(label, value) -%}
<div class="stat-row"><span class="stat-label">{{ label }}</span><span class="stat-value">{{ value }}</span></div>
{%- endmacro %}
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>{{ title }} | Malta Tax Calculators</title>
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700;800&display=swap" rel="stylesheet">
<style>
  *{margin:0;padding:0;box-sizing:border-box}

  :root{
    --bg-deep:#050816;
    --bg-surface:rgba(15,23,42,0.55);
    --bg-input:rgba(8,11,22,0.85);
    --border-subtle:rgba(99,102,241,0.1);
    --border-hover:rgba(99,102,241,0.25);
    --text-primary:#f1f5f9;
    --text-secondary:#94a3b8;
    --text-muted:#64748b;
    --indigo:#818cf8;
    --indigo-deep:#6366f1;
    --violet:#8b5cf6;
    --emerald:#34d399;
    --amber:#fbbf24;
    --red:#f87171;
    --radius-lg:16px;
    --radius-md:10px;
  }

  body{
    background:var(--bg-deep);color:var(--text-primary);
    font-family:'Inter',system-ui,-apple-system,sans-serif;
    line-height:1.6;min-height:100vh;
  }
  a{color:var(--indigo);text-decoration:none}

  .container{max-width:1040px;margin:0 auto;padding:2rem 1.5rem}

  /* ── hero header ── */
  .hero{text-align:center;padding:2rem 0 1.6rem}
  .hero h1{font-size:clamp(1.5rem,4vw,2.2rem);font-weight:800;letter-spacing:-.03em}
  .hero-sub{color:var(--text-secondary);margin-top:.5rem;font-size:.92rem}
  .crumb{font-size:.82rem;color:var(--text-muted);margin-bottom:.6rem}

  /* ── glass cards ── */
  .card{
    background:var(--bg-surface);
    border:1px solid var(--border-subtle);
    border-radius:var(--radius-lg);padding:1.6rem;margin-bottom:1.4rem;
  }
  .card:hover{border-color:var(--border-hover)}
  .calc-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(280px,1fr));gap:1.2rem}
  .calc-grid .card p{color:var(--text-secondary);font-size:.86rem;margin-top:.4rem}

  h2{font-size:1.1rem;font-weight:700;margin-bottom:1rem}

  /* ── form ── */
  .form-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(260px,1fr));gap:1rem 1.5rem}
  .form-group{display:flex;flex-direction:column}
  .form-group label{font-size:.78rem;color:var(--text-secondary);margin-bottom:.3rem;font-weight:500}
  .form-group input,.form-group select{
    background:var(--bg-input);
    border:1px solid rgba(71,85,105,.35);border-radius:var(--radius-md);
    color:var(--text-primary);padding:.6rem .85rem;font-size:.88rem;font-family:inherit;
  }
  .form-group input.invalid{border-color:var(--red)}
  .field-error{color:var(--red);font-size:.76rem;margin-top:.25rem}
  .question{grid-column:1/-1}

  /* ── buttons ── */
  .btn{
    display:inline-flex;align-items:center;justify-content:center;
    padding:.7rem 1.8rem;border:none;border-radius:var(--radius-md);
    font-size:.92rem;font-weight:600;cursor:pointer;font-family:inherit;margin-top:1.2rem;
  }
  .btn-primary{background:linear-gradient(135deg,var(--indigo-deep),var(--violet));color:#fff}
  .btn-success{background:linear-gradient(135deg,#10b981,var(--emerald));color:#fff}

  /* ── stat rows ── */
  .stat-row{
    display:flex;justify-content:space-between;align-items:center;
    padding:.5rem 0;border-bottom:1px solid rgba(51,65,85,.3);
  }
  .stat-row:last-child{border-bottom:none}
  .stat-label{color:var(--text-secondary);font-size:.86rem}
  .stat-value{font-weight:600;font-size:.86rem;font-variant-numeric:tabular-nums}
  .total .stat-value{color:var(--emerald);font-size:1rem}

  .verdict{font-size:1.15rem;font-weight:800;margin-bottom:.5rem}
  .verdict.ok{color:var(--emerald)}
  .verdict.warn{color:var(--amber)}
  .verdict.bad{color:var(--red)}
  .muted{color:var(--text-secondary);font-size:.88rem;line-height:1.7}

  .table-wrap{overflow-x:auto;border-radius:var(--radius-md);border:1px solid rgba(51,65,85,.25)}
  table{width:100%;border-collapse:collapse;font-size:.84rem}
  th{text-align:left;padding:.6rem .8rem;color:var(--text-secondary);font-size:.76rem;
     text-transform:uppercase;background:rgba(15,23,42,.45)}
  td{padding:.5rem .8rem;border-bottom:1px solid rgba(51,65,85,.15)}

  .chart-img{width:100%;border-radius:var(--radius-md);margin-top:.5rem}
  .footer{text-align:center;padding:1rem 0 2rem;color:var(--text-muted);font-size:.78rem}

  @media(max-width:640px){
    .container{padding:1rem}
    .form-grid{grid-template-columns:1fr}
  }
</style>
</head>
<body>
<div class="container">

<header class="hero">
  {% if page != "index" %}<div class="crumb"><a href="{{ url_for('index') }}">Calculators</a> / {{ title }}</div>{% endif %}
  <h1>{{ title }}</h1>
  <p class="hero-sub">{{ subtitle }}</p>
</header>

{# ───────────────────────── Index ───────────────────────── #}
{% if page == "index" %}
<div class="calc-grid">
  {% for endpoint, name, blurb in calculators %}
  <a class="card" href="{{ url_for(endpoint) }}"><h2>{{ name }}</h2><p>{{ blurb }}</p></a>
  {% endfor %}
</div>
{% endif %}

{# ───────────────────────── Personal tax ───────────────────────── #}
{% if page == "personal_tax" %}
<div class="card">
  <h2>Your Income</h2>
  <form method="POST">
    <div class="form-grid">
      {{ field("gross_salary", "Gross annual salary (€)", placeholder="30000") }}
      {{ field("bonuses", "Bonuses (€)", default="0") }}
      {{ field("part_time_income", "Part-time income (€)", default="0") }}
      {{ select("part_time_type", "Part-time type", [("employment", "Employment"), ("self_employment", "Self-employment")], "employment") }}
      {{ select("tax_year", "Tax year", year_options, default_year) }}
      {{ select("residency", "Residency", [("resident", "Resident"), ("non_resident", "Non-resident")], "resident") }}
      {{ select("tax_status", "Tax status", cfg.TAX_STATUSES.items(), "single") }}
      {{ select("ssc_category", "SSC category", cfg.SSC_CATEGORIES.items(), cfg.SSC_DEFAULT_CATEGORY) }}
    </div>
    <button class="btn btn-primary" type="submit">Calculate</button>
  </form>
</div>
{% if result %}
<div class="card">
  <h2>Results for {{ result.tax_year }}</h2>
  {{ row("Gross income", fmt(result.gross_income)) }}
  {{ row("Chargeable income", fmt(result.chargeable_income)) }}
  {{ row("Tax band", result.bracket.label() ~ " @ " ~ pct(result.bracket.rate * 100, 0)) }}
  {{ row("Income tax (progressive)", fmt(result.main_tax)) }}
  {{ row("Part-time tax (flat 10%)", fmt(result.part_time_tax)) }}
  {{ row("SSC", fmt(result.ssc.annual_ssc) ~ " (" ~ result.ssc.description ~ ")") }}
  {% if result.gov_bonus %}{{ row("Government bonus", fmt(result.gov_bonus)) }}{% endif %}
  {{ row("Effective rate (tax + SSC)", pct(result.effective_rate * 100)) }}
  <div class="total">{{ row("Net income", fmt(result.net_income)) }}</div>
  {{ row("Net monthly", fmt(result.net_income / 12)) }}
</div>
{% if projection and projection|length > 1 %}
<div class="card">
  <h2>Basis Year Comparison</h2>
  <div class="table-wrap"><table>
    <thead><tr><th>Year</th><th>Chargeable</th><th>Tax</th><th>SSC</th><th>Net</th></tr></thead>
    <tbody>
    {% for year, r in projection.items() %}
    <tr><td>{{ year }}</td><td>{{ fmt(r.chargeable_income) }}</td><td>{{ fmt(r.total_tax) }}</td>
        <td>{{ fmt(r.ssc.annual_ssc) }}</td><td>{{ fmt(r.net_income) }}</td></tr>
    {% endfor %}
    </tbody>
  </table></div>
</div>
{% endif %}
{% for img in charts %}<div class="card"><img class="chart-img" src="data:image/png;base64,{{ img }}" alt="Tax chart"></div>{% endfor %}
{% endif %}
{% endif %}

{# ───────────────────────── Rental ───────────────────────── #}
{% if page == "rental" %}
<div class="card">
  <h2>Rental Details</h2>
  <form method="POST">
    <div class="form-grid">
      {{ field("rental_income", "Gross rental income (€)", placeholder="12000") }}
      {{ field("interest_paid", "Interest paid on loan (€)", default="0") }}
      {{ field("ground_rent", "Ground rent (€)", default="0") }}
      {{ field("licence_fees", "Licence fees (€)", default="0") }}
      {{ select("final_tax_election", "Opted for the 15% final tax?", [("no", "No"), ("yes", "Yes"), ("not_applicable", "Not applicable")], "no") }}
    </div>
    <button class="btn btn-primary" type="submit">Calculate</button>
  </form>
</div>
{% if result %}
<div class="card">
  <h2>Regular basis (35%)</h2>
  {{ row("Maintenance allowance (20%)", fmt(result.maintenance_allowance)) }}
  {{ row("Taxable rent", fmt(result.regular_taxable)) }}
  <div class="total">{{ row("Tax", fmt(result.regular_tax)) }}</div>
</div>
<div class="card">
  <h2>Final tax (15%)</h2>
  {{ row("Taxable rent", fmt(result.final_taxable)) }}
  <div class="total">{{ row("Tax", fmt(result.final_tax)) }}</div>
  {% if result.recommendation %}<p class="verdict ok" style="margin-top:1rem">{{ recommendations[result.recommendation] }}</p>{% endif %}
</div>
{% endif %}
{% endif %}

{# ───────────────────────── Penalties & interest ───────────────────────── #}
{% if page == "late_filing" %}
<div class="card">
  <h2>Your Return</h2>
  <form method="POST">
    <div class="form-grid">
      {{ select("taxpayer_type", "Taxpayer type", [("Individual", "Individual"), ("Corporate", "Corporate")], "Individual", submit=True) }}
      {{ field("tax_year", "Tax year", type="number", default=today.year - 1) }}
      {% if form.get("taxpayer_type") == "Corporate" %}
      {{ select("year_end_month", "Financial year end month", month_options, "12") }}
      {{ select("ddt_exemption", "DDT10 exemption", [("no", "No"), ("yes", "Yes")], "no") }}
      {% endif %}
      {{ select("return_filed", "Has the return been filed?", [("no", "No"), ("yes", "Yes")], "no") }}
      {{ field("submitted_date", "Submission date (if filed)", type="date") }}
      {{ select("has_outstanding", "Is tax still outstanding?", [("no", "No"), ("yes", "Yes")], "no") }}
      {{ field("tax_amount", "Outstanding amount (€)") }}
      {{ field("due_date", "Due date (blank for the payment deadline)", type="date") }}
      {{ field("interest_as_of", "Compute interest to (blank for today)", type="date") }}
    </div>
    <button class="btn btn-primary" type="submit">Calculate</button>
  </form>
</div>
{% if result %}
<div class="card">
  <h2>Deadlines</h2>
  {{ row("Filing deadline", fmt_date(result.filing_deadline)) }}
  {{ row("Payment deadline", fmt_date(result.payment_deadline)) }}
  {{ row("Interest runs", fmt_date(result.due_date) ~ " to " ~ fmt_date(result.interest_as_of)) }}
</div>
<div class="card">
  <h2>Penalty & Interest</h2>
  {% if result.penalty.is_late %}
  {{ row("Months late", result.penalty.months_late) }}
  {{ row("Tier", result.penalty.tier.label) }}
  {% endif %}
  {{ row("Late filing penalty", fmt(result.penalty_amount)) }}
  {{ row("Outstanding tax", fmt(result.outstanding)) }}
  {{ row("Interest", fmt(result.interest_amount)) }}
  <div class="total">{{ row("Total payable", fmt(result.total_payable)) }}</div>
  {% if result.interest.breakdown %}
  <div class="table-wrap" style="margin-top:1rem"><table>
    <thead><tr><th>Rate period</th><th>Days</th><th>Months</th><th>Rate</th><th>Interest</th></tr></thead>
    <tbody>
    {% for p in result.interest.breakdown %}
    <tr><td>{{ p.label }}</td><td>{{ p.days }}</td><td>{{ p.months }}</td>
        <td>{{ pct(p.rate * 100, 2) }}</td><td>{{ fmt(p.amount) }}</td></tr>
    {% endfor %}
    </tbody>
  </table></div>
  {% for img in charts %}<img class="chart-img" src="data:image/png;base64,{{ img }}" alt="Interest breakdown">{% endfor %}
  {% endif %}
  <form method="POST" action="{{ url_for('late_filing_pdf') }}">
    {% for k, v in form.items() %}<input type="hidden" name="{{ k }}" value="{{ v }}">{% endfor %}
    <button class="btn btn-success" type="submit">Download PDF</button>
  </form>
</div>
{% endif %}
{% endif %}

{# ───────────────────────── Notice period ───────────────────────── #}
{% if page == "notice" %}
<div class="card">
  <h2>Employment Dates</h2>
  <form method="POST">
    <div class="form-grid">
      {{ field("start_date", "Employment start date", type="date") }}
      {{ field("notice_date", "Date notice is given", type="date", default=today.isoformat()) }}
    </div>
    <button class="btn btn-primary" type="submit">Calculate</button>
  </form>
</div>
{% if result %}
<div class="card">
  <h2>Notice Period</h2>
  {{ row("Length of service", result.service_label) }}
  {{ row("Probation", "Yes" if result.in_probation else "No") }}
  <div class="total">{{ row("Notice required", result.required_weeks ~ " weeks") }}</div>
  {{ row("Notice period starts", fmt_date(result.notice_starts)) }}
  {{ row("Last day of employment", fmt_date(result.last_day)) }}
</div>
{% endif %}
{% endif %}

{# ───────────────────────── Audit exemption ───────────────────────── #}
{% if page == "audit" %}
<div class="card">
  <h2>About Your Company</h2>
  <form method="POST">
    <div class="form-grid">
      {{ field("incorporation_year", "Year of incorporation", type="number", placeholder=today.year) }}
      {% for name, question in questions %}
      <div class="question">
      {% if name == "rule3_first_year_end" %}
        {{ field(name, question, placeholder="December 2024") }}
      {% else %}
        {{ select(name, question, [("", "Select..."), ("yes", "Yes"), ("no", "No")], submit=True) }}
      {% endif %}
      </div>
      {% endfor %}
    </div>
    <button class="btn btn-primary" type="submit">Continue</button>
  </form>
</div>
{% if conclusion %}
<div class="card">
  <h2>Audit Obligations</h2>
  {% set tone = {"AUDIT_REQUIRED": "bad", "REVIEW_REQUIRED": "warn", "INCOMPLETE": "warn"}.get(conclusion.outcome.value, "ok") %}
  <p class="verdict {{ tone }}">{{ conclusion.outcome.label }}</p>
  <p class="muted">{{ conclusion.message }}</p>
  {% if conclusion.details %}<p class="muted" style="margin-top:.6rem">{{ conclusion.details }}</p>{% endif %}
</div>
{% endif %}
{% endif %}

<p class="footer">Estimates for guidance only. Not tax advice.</p>
</div>
</body>
</html>
"""


# ═══════════════════════════════════════════════════════════════════
# Rendering
# ═══════════════════════════════════════════════════════════════════

def _render(page: str, title: str, subtitle: str = "", **ctx: Any) -> str:
    context: Dict[str, Any] = dict(
        page=page, title=title, subtitle=subtitle,
        form={}, errors={}, result=None, charts=[], today=date.today(),
        cfg=cfg, fmt=fmt, pct=pct, fmt_date=fmt_date,
    )
    context.update(ctx)
    return render_template_string(HTML_TEMPLATE, **context)


def _invalid(page: str, title: str, form: Dict[str, str], exc: FormErrors, **ctx: Any):
    logger.warning("%s: invalid input %s", page, exc.errors)
    return _render(page, title, form=form, errors=exc.errors, **ctx), 400


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════

@app.route("/")
def index():
    return _render("index", "Malta Tax Calculators",
                   "Income tax, rental tax, penalties, notice periods and audit exemptions.",
                   calculators=CALCULATORS)


@app.route("/personal-tax", methods=["GET", "POST"])
def personal_tax_page():
    title = "Personal Income Tax"
    years = sorted({y for y, _ in cfg.RESIDENT_BRACKETS})
    ctx = dict(year_options=[(str(y), str(y)) for y in years],
               default_year=str(cfg.DEFAULT_TAX_YEAR),
               subtitle="Income tax, SSC and net income.")
    if request.method == "GET":
        return _render("personal_tax", title, **ctx)

    form = request.form.to_dict()
    try:
        inputs = parse_personal_tax_form(form)
    except FormErrors as exc:
        return _invalid("personal_tax", title, form, exc, **ctx)

    result = personal_tax(inputs)
    projection = None
    if inputs.residency == "resident" and inputs.tax_year in cfg.GOV_BONUS_CHARGEABLE_YEARS:
        projection = personal_tax_projection(inputs)
    charts = report.personal_tax_charts(inputs, result, projection)
    logger.info("Personal tax %s/%s", inputs.tax_year, inputs.tax_status)
    return _render("personal_tax", title, form=form, result=result, projection=projection, charts=charts, **ctx)


@app.route("/rental-income-tax", methods=["GET", "POST"])
def rental_page():
    title = "Rental Income Tax"
    ctx = dict(recommendations=RECOMMENDATIONS, subtitle="Regular 35% basis or 15% final tax.")
    if request.method == "GET":
        return _render("rental", title, **ctx)

    form = request.form.to_dict()
    try:
        inputs = parse_rental_form(form)
    except FormErrors as exc:
        return _invalid("rental", title, form, exc, **ctx)
    return _render("rental", title, form=form, result=rental_tax(inputs), **ctx)


def _month_options():
    return [(str(i), name) for i, name in enumerate(cfg.MONTHS, 1)]


@app.route("/late-tax-penalty", methods=["GET", "POST"])
def late_filing_page():
    title = "Late Tax Penalties & Interest"
    ctx = dict(month_options=_month_options(),
               subtitle="Late filing penalties and interest on unpaid tax.")
    if request.method == "GET":
        return _render("late_filing", title, **ctx)

    form = request.form.to_dict()
    try:
        inputs = parse_late_filing_form(form)
    except FormErrors as exc:
        return _invalid("late_filing", title, form, exc, **ctx)

    result = calculate_penalties_and_interest(inputs)
    logger.info("Penalty %s %s: total %.2f", inputs.profile.taxpayer_type,
                inputs.profile.tax_year, result.total_payable)
    charts = report.penalty_charts(result)
    return _render("late_filing", title, form=form, result=result, charts=charts, **ctx)


@app.route("/late-tax-penalty/pdf", methods=["POST"])
def late_filing_pdf():
    form = request.form.to_dict()
    try:
        inputs = parse_late_filing_form(form)
    except FormErrors as exc:
        logger.warning("PDF request with invalid input %s", exc.errors)
        return "Please correct the form before downloading a report.", 400

    result = calculate_penalties_and_interest(inputs)
    buf = io.BytesIO()
    report.generate_pdf(inputs, result, buf)
    buf.seek(0)
    return send_file(buf, mimetype="application/pdf", as_attachment=True,
                     download_name="late_tax_report.pdf")


@app.route("/notice-period", methods=["GET", "POST"])
def notice_page():
    title = "Notice Period"
    subtitle = "Statutory notice owed when an employment ends."
    if request.method == "GET":
        return _render("notice", title, subtitle)

    form = request.form.to_dict()
    try:
        start, notice_date = parse_notice_form(form)
    except FormErrors as exc:
        return _invalid("notice", title, form, exc, subtitle=subtitle)
    result = calculate_notice_period(start, notice_date)
    return _render("notice", title, subtitle, form=form, result=result)


@app.route("/audit-exemption", methods=["GET", "POST"])
def audit_page():
    title = "Audit Exemption"
    subtitle = "Find out whether your company needs an audit or a review report."
    form = request.form.to_dict() if request.method == "POST" else {}
    try:
        answers = parse_audit_form(form)
    except FormErrors as exc:
        return _invalid("audit", title, form, exc, subtitle=subtitle,
                        questions=[], conclusion=None)

    conclusion = audit_conclusion(answers) if answers.incorporation_year else None
    return _render("audit", title, subtitle, form=form,
                   questions=visible_questions(answers), conclusion=conclusion)


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(host: str = "127.0.0.1", port: int = 5000,
            open_browser: bool = True, debug: bool = False) -> None:
    """Start the Flask development server, optionally opening a browser."""
    import threading
    import webbrowser

    url = f"http://localhost:{port}"
    logger.info("Starting web app at %s", url)
    if open_browser:
        threading.Timer(1.0, lambda: webbrowser.open(url)).start()
    app.run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    run_web()
