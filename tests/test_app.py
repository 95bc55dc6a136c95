"""
Tests for the Flask routes.
"""

import pytest

from app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


LATE_FORM = {
    "taxpayer_type": "Individual",
    "tax_year": "2022",
    "return_filed": "yes",
    "submitted_date": "2024-04-30",
    "has_outstanding": "yes",
    "tax_amount": "1000",
    "due_date": "2023-01-01",
    "interest_as_of": "2023-03-01",
}


class TestPages:
    @pytest.mark.parametrize("url", [
        "/", "/personal-tax", "/rental-income-tax", "/late-tax-penalty", "/notice-period", "/audit-exemption",
    ])
    def test_get(self, client, url):
        assert client.get(url).status_code == 200

    def test_index_links_calculators(self, client):
        html = client.get("/").get_data(as_text=True)
        assert "/notice-period" in html
        assert "/audit-exemption" in html


class TestPersonalTax:
    def test_valid(self, client):
        resp = client.post("/personal-tax", data={"gross_salary": "30000", "tax_year": "2025"})
        html = resp.get_data(as_text=True)
        assert resp.status_code == 200
        assert "€2,225.00" in html
        assert "data:image/png;base64," in html

    def test_projection_for_child_tables(self, client):
        resp = client.post("/personal-tax", data={
            "gross_salary": "40000", "tax_year": "2026", "tax_status": "married_two_plus_children",
        })
        assert "Basis Year Comparison" in resp.get_data(as_text=True)

    def test_invalid(self, client):
        resp = client.post("/personal-tax", data={"gross_salary": "lots"})
        assert resp.status_code == 400
        assert "Please enter a valid number" in resp.get_data(as_text=True)


class TestRental:
    def test_valid(self, client):
        resp = client.post("/rental-income-tax", data={"rental_income": "12000"})
        html = resp.get_data(as_text=True)
        assert resp.status_code == 200
        assert "€1,800.00" in html
        assert "€3,360.00" in html


class TestLateFiling:
    def test_valid(self, client):
        resp = client.post("/late-tax-penalty", data=LATE_FORM)
        html = resp.get_data(as_text=True)
        assert resp.status_code == 200
        assert "€50.00" in html
        assert "€12.00" in html
        assert "Download PDF" in html

    def test_invalid(self, client):
        resp = client.post("/late-tax-penalty", data={**LATE_FORM, "tax_year": "1998"})
        assert resp.status_code == 400

    def test_pdf(self, client):
        resp = client.post("/late-tax-penalty/pdf", data=LATE_FORM)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")
        assert "late_tax_report.pdf" in resp.headers["Content-Disposition"]

    def test_pdf_invalid(self, client):
        resp = client.post("/late-tax-penalty/pdf", data={**LATE_FORM, "return_filed": ""})
        assert resp.status_code == 400


class TestNotice:
    def test_valid(self, client):
        resp = client.post("/notice-period", data={"start_date": "2020-01-15", "notice_date": "2024-06-10"})
        html = resp.get_data(as_text=True)
        assert resp.status_code == 200
        assert "8 weeks" in html
        assert "4 years, 4 months" in html

    def test_order_error(self, client):
        resp = client.post("/notice-period", data={"start_date": "2020-01-15", "notice_date": "2019-01-01"})
        assert resp.status_code == 400


class TestAudit:
    def test_merchant_shipping(self, client):
        resp = client.post("/audit-exemption", data={
            "incorporation_year": "2020", "first_question": "no", "merchant_shipping": "yes",
        })
        assert "Exempt (Merchant Shipping)" in resp.get_data(as_text=True)

    def test_progressive_questions(self, client):
        html = client.post("/audit-exemption", data={
            "incorporation_year": "2015", "first_question": "no", "merchant_shipping": "no",
        }).get_data(as_text=True)
        assert 'name="rule6_turnover"' in html
        assert 'name="small_group_turnover"' not in html

    def test_bad_year(self, client):
        assert client.post("/audit-exemption", data={"incorporation_year": "1800"}).status_code == 400
