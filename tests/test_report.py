"""
Smoke tests for the matplotlib charts and the PDF report.
"""

import base64
import io

import matplotlib.pyplot as plt
import pytest
from datetime import date

import report
from penalties import LateFilingInputs, TaxpayerProfile, calculate_penalties_and_interest
from tax import PersonalTaxInputs, personal_tax, personal_tax_projection, select_brackets

PNG_MAGIC = b"\x89PNG"


@pytest.fixture
def late_result():
    inputs = LateFilingInputs(
        profile=TaxpayerProfile("Corporate", 2022, 12),
        return_filed=False,
        has_outstanding=True,
        tax_amount=10_000,
    )
    return inputs, calculate_penalties_and_interest(inputs, today=date(2025, 1, 15))


class TestCharts:
    def test_tax_curve(self):
        fig = report.tax_curve_chart(select_brackets(2025, "single"), "Single", marker=30_000)
        assert isinstance(fig, plt.Figure)
        plt.close(fig)

    def test_interest_chart_without_interest(self):
        inputs = LateFilingInputs(profile=TaxpayerProfile("Individual", 2022), return_filed=False)
        result = calculate_penalties_and_interest(inputs, today=date(2025, 1, 15))
        fig = report.interest_breakdown_chart(result.interest)
        assert isinstance(fig, plt.Figure)
        plt.close(fig)
        assert report.penalty_charts(result) == []

    def test_figure_to_base64(self):
        fig, ax = plt.subplots()
        ax.plot([0, 1], [0, 1])
        data = base64.b64decode(report.figure_to_base64(fig))
        plt.close(fig)
        assert data.startswith(PNG_MAGIC)

    def test_personal_tax_charts(self):
        inputs = PersonalTaxInputs(gross_salary=40_000, tax_status="married_one_child", tax_year=2026)
        images = report.personal_tax_charts(inputs, personal_tax(inputs), personal_tax_projection(inputs))
        assert len(images) == 2
        assert all(base64.b64decode(img).startswith(PNG_MAGIC) for img in images)

    def test_penalty_charts(self, late_result):
        _, result = late_result
        images = report.penalty_charts(result)
        assert len(images) == 1


class TestPdf:
    def test_pdf_to_buffer(self, late_result):
        inputs, result = late_result
        buf = io.BytesIO()
        assert report.generate_pdf(inputs, result, buf) is buf
        assert buf.getvalue().startswith(b"%PDF")

    def test_pdf_to_path(self, late_result, tmp_path):
        inputs, result = late_result
        out = tmp_path / "report.pdf"
        report.generate_pdf(inputs, result, str(out))
        assert out.read_bytes().startswith(b"%PDF")

    def test_eur_formatter(self):
        assert report._eur_fmt(25_000, None) == "€25k"
        assert report._eur_fmt(250, None) == "€250"
