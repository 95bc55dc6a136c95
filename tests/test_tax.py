"""
Unit tests for income tax brackets, SSC, personal tax and rental tax.
"""

import numpy as np
import pytest

import config as cfg
from tax import (
    BRACKET_TABLES,
    NON_RESIDENT_TABLE,
    PersonalTaxInputs,
    RentalInputs,
    TaxTableError,
    bracket_tax,
    find_bracket,
    marginal_rate_breakdown,
    part_time_split,
    personal_tax,
    personal_tax_projection,
    rental_tax,
    round_half_up,
    select_brackets,
    ssc_breakdown,
    ssc_rule,
    weekly_ssc,
)


class TestBracketTables:
    """Bracket selection and the multiply-and-subtract evaluator."""

    @pytest.fixture
    def single_2025(self):
        return select_brackets(2025, "single")

    def test_zero_band_boundary(self, single_2025):
        assert float(bracket_tax(17_500, single_2025)) == 0.0
        assert float(bracket_tax(17_501, single_2025)) == pytest.approx(0.15)

    @pytest.mark.parametrize("limit", [26_500, 60_000])
    def test_continuous_at_band_limits(self, single_2025, limit):
        below = float(bracket_tax(limit, single_2025))
        above = float(bracket_tax(limit + 1, single_2025))
        assert 0 <= above - below < 0.5

    def test_known_values(self, single_2025):
        assert float(bracket_tax(30_000, single_2025)) == pytest.approx(2_225)
        assert float(bracket_tax(100_000, single_2025)) == pytest.approx(23_725)

    @pytest.mark.parametrize("key", sorted(BRACKET_TABLES))
    def test_non_negative_and_non_decreasing(self, key):
        incomes = np.linspace(0, 150_000, 3_001)
        due = bracket_tax(incomes, BRACKET_TABLES[key])
        assert (due >= 0).all()
        assert (np.diff(due) >= -1e-9).all()

    def test_vectorised_matches_scalar(self, single_2025):
        incomes = np.array([0, 17_500, 20_000, 45_000, 80_000])
        vector = bracket_tax(incomes, single_2025)
        for x, v in zip(incomes, vector):
            assert float(bracket_tax(x, single_2025)) == pytest.approx(v)

    def test_non_resident_table_ignores_year_and_status(self):
        assert select_brackets(2025, "single", "non_resident") is NON_RESIDENT_TABLE
        assert select_brackets(2027, "parent_one_child", "non_resident") is NON_RESIDENT_TABLE
        assert float(bracket_tax(5_000, NON_RESIDENT_TABLE)) == pytest.approx(1_050)

    def test_missing_vintage_raises(self):
        with pytest.raises(TaxTableError, match="2026"):
            select_brackets(2025, "married_one_child")
        with pytest.raises(TaxTableError):
            select_brackets(2030, "single")

    def test_last_band_is_open_ended(self):
        for table in BRACKET_TABLES.values():
            assert table[-1].open_ended
            assert not any(b.open_ended for b in table[:-1])

    def test_find_bracket(self, single_2025):
        assert find_bracket(17_500, single_2025).rate == 0.0
        assert find_bracket(17_501, single_2025).rate == 0.15
        assert find_bracket(1_000_000, single_2025).open_ended


class TestPartTime:
    def test_employment_within_ceiling(self):
        assert part_time_split(8_000, "employment") == (pytest.approx(800), 0.0)

    def test_employment_excess(self):
        flat, excess = part_time_split(15_000, "employment")
        assert flat == pytest.approx(1_000)
        assert excess == pytest.approx(5_000)

    def test_self_employment_ceiling(self):
        flat, excess = part_time_split(15_000, "self_employment")
        assert flat == pytest.approx(1_200)
        assert excess == pytest.approx(3_000)

    def test_nothing_declared(self):
        assert part_time_split(0) == (0.0, 0.0)

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            part_time_split(1_000, "pension")


class TestSSC:
    def test_minimum_band(self):
        s = ssc_breakdown(10_000)
        assert s.band == "minimum"
        assert s.weekly_ssc == pytest.approx(22.18)
        assert s.annual_ssc == pytest.approx(22.18 * 52)

    def test_percentage_band(self):
        s = ssc_breakdown(26_000)
        assert s.band == "percentage"
        assert s.weekly_ssc == pytest.approx(50.0)

    def test_maximum_band(self):
        assert ssc_breakdown(52_000).weekly_ssc == pytest.approx(54.43)

    def test_born_before_1962_lower_maximum(self):
        assert ssc_breakdown(26_000, "employed_born_before_1962").weekly_ssc == pytest.approx(45.19)

    def test_student_cap(self):
        s = ssc_breakdown(5_200, "student_under_18")
        assert s.weekly_ssc == pytest.approx(4.38)
        assert s.band == "capped"

    def test_student_percentage(self):
        assert ssc_breakdown(2_600, "student_18_plus").weekly_ssc == pytest.approx(5.0)

    def test_exempt(self):
        s = ssc_breakdown(40_000, "exempt")
        assert s.annual_ssc == 0.0
        assert s.description == "Exempt"

    def test_no_salary_pays_weekly_minimum(self):
        s = ssc_breakdown(0)
        assert s.band == "minimum"
        assert s.weekly_ssc == pytest.approx(22.18)
        assert ssc_breakdown(0, "employed_under_18").weekly_ssc == pytest.approx(6.62)
        assert ssc_breakdown(0, "student_under_18").annual_ssc == 0.0

    @pytest.mark.parametrize("category", sorted(cfg.SSC_EMPLOYED_BANDS))
    def test_weekly_monotone_and_bounded(self, category):
        rule = ssc_rule(category)
        wages = np.linspace(0, 1_000, 2_001)
        due = weekly_ssc(wages, rule)
        assert (np.diff(due) >= 0).all()
        assert due.min() == pytest.approx(rule.weekly_floor)
        assert due.max() == pytest.approx(rule.weekly_ceiling)

    def test_unknown_category(self):
        with pytest.raises(ValueError):
            ssc_rule("retired")


class TestPersonalTax:
    def test_single_2025(self):
        r = personal_tax(PersonalTaxInputs(gross_salary=30_000))
        assert r.chargeable_income == pytest.approx(30_000)
        assert r.main_tax == pytest.approx(2_225)
        assert r.ssc.annual_ssc == pytest.approx(54.43 * 52)
        assert r.gov_bonus == pytest.approx(cfg.GOV_BONUS)
        assert r.net_income == pytest.approx(30_000 + cfg.GOV_BONUS - 2_225 - 54.43 * 52)

    def test_part_time_two_part_formula(self):
        r = personal_tax(PersonalTaxInputs(gross_salary=30_000, part_time_income=15_000))
        assert r.part_time_tax == pytest.approx(1_000)
        assert r.chargeable_income == pytest.approx(35_000)
        assert r.main_tax == pytest.approx(0.25 * 35_000 - 5_275)
        assert r.total_tax == pytest.approx(r.main_tax + 1_000)

    def test_bonus_chargeable_in_child_tables(self):
        r = personal_tax(PersonalTaxInputs(gross_salary=20_000, tax_status="married_one_child",
                                           tax_year=2026))
        assert r.chargeable_income == pytest.approx(20_000 + cfg.GOV_BONUS)
        assert r.main_tax == pytest.approx(0.15 * (20_000 + cfg.GOV_BONUS) - 2_625)

    def test_bonus_not_chargeable_for_non_residents(self):
        r = personal_tax(PersonalTaxInputs(gross_salary=20_000, residency="non_resident", tax_year=2026))
        assert r.chargeable_income == pytest.approx(20_000)
        assert r.main_tax == pytest.approx(0.35 * 20_000 - 840)
        assert r.gov_bonus == pytest.approx(cfg.GOV_BONUS)

    def test_non_resident(self):
        r = personal_tax(PersonalTaxInputs(gross_salary=5_000, residency="non_resident"))
        assert r.main_tax == pytest.approx(1_050)

    def test_missing_table_raises(self):
        with pytest.raises(TaxTableError):
            personal_tax(PersonalTaxInputs(gross_salary=30_000, tax_status="parent_one_child",
                                           tax_year=2025))

    def test_negative_salary_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            PersonalTaxInputs(gross_salary=-1)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError):
            PersonalTaxInputs(gross_salary=1, tax_status="widowed")

    def test_projection_covers_child_vintages(self):
        inputs = PersonalTaxInputs(gross_salary=40_000, tax_status="married_two_plus_children",
                                   tax_year=2026)
        projection = personal_tax_projection(inputs)
        assert list(projection) == [2026, 2027, 2028]
        assert projection[2028].main_tax <= projection[2026].main_tax

    def test_marginal_rate(self):
        m = marginal_rate_breakdown(PersonalTaxInputs(gross_salary=70_000))
        assert m["income_tax_pct"] == pytest.approx(35.0)
        assert m["ssc_pct"] == pytest.approx(0.0)


class TestRentalTax:
    def test_regular_cheaper(self):
        r = rental_tax(RentalInputs(rental_income=10_000, interest_paid=6_000))
        assert r.maintenance_allowance == pytest.approx(2_000)
        assert r.regular_taxable == pytest.approx(2_000)
        assert r.regular_tax == 700
        assert r.final_tax == 1_500
        assert r.recommendation == "regular"

    def test_final_cheaper(self):
        r = rental_tax(RentalInputs(rental_income=12_000))
        assert r.regular_taxable == pytest.approx(9_600)
        assert r.regular_tax == 3_360
        assert r.final_tax == 1_800
        assert r.recommendation == "final"

    def test_allowance_capped_by_net_rent(self):
        r = rental_tax(RentalInputs(rental_income=10_000, interest_paid=9_500))
        assert r.maintenance_allowance == pytest.approx(500)
        assert r.regular_taxable == 0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2
        assert round_half_up(0) == 0

    def test_election_overrides_recommendation(self):
        assert rental_tax(RentalInputs(12_000, final_tax_election="yes")).recommendation == "opted_final"
        assert rental_tax(RentalInputs(12_000, final_tax_election="not_applicable")).recommendation is None

    def test_no_income_no_recommendation(self):
        assert rental_tax(RentalInputs(0)).recommendation is None

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            RentalInputs(rental_income=100, ground_rent=-5)
