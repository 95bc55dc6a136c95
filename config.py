"""
Malta statutory tables for the tax calculators.

All monetary values in EUR. Bracket tables are stored in the
"rate x income - subtract" shortcut form used by the Commissioner
for Tax and Customs tax tables.
"""

# ── General ──────────────────────────────────────────────────────────
DEFAULT_TAX_YEAR = 2025
MIN_FILING_TAX_YEAR = 1999          # earliest year the penalty calculator accepts
MIN_INCORPORATION_YEAR = 1900

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

# ── Income Tax: resident bracket vintages ────────────────────────────
# Bands: (upper limit, rate, subtract). Lower limit is the previous
# band's upper limit (exclusive). Last band is open-ended (None).
_SINGLE_2025 = [
    (17_500, 0.00, 0),
    (26_500, 0.15, 2_625),
    (60_000, 0.25, 5_275),
    (None, 0.35, 11_275),
]
_MARRIED_2025 = [
    (22_500, 0.00, 0),
    (32_000, 0.15, 3_375),
    (60_000, 0.25, 6_575),
    (None, 0.35, 12_575),
]

RESIDENT_BRACKETS = {
    (2025, "single"): _SINGLE_2025,
    (2025, "married"): _MARRIED_2025,

    # 2026 basis year
    (2026, "married_one_child"): [
        (17_500, 0.00, 0),
        (26_500, 0.15, 2_625),
        (60_000, 0.25, 5_275),
        (None, 0.35, 11_275),
    ],
    (2026, "married_two_plus_children"): [
        (22_500, 0.00, 0),
        (32_000, 0.15, 3_375),
        (60_000, 0.25, 6_575),
        (None, 0.35, 12_575),
    ],
    (2026, "parent_one_child"): [
        (14_500, 0.00, 0),
        (21_000, 0.15, 2_175),
        (60_000, 0.25, 4_275),
        (None, 0.35, 10_270),
    ],
    (2026, "parent_two_plus_children"): [
        (18_500, 0.00, 0),
        (25_500, 0.15, 2_775),
        (60_000, 0.25, 5_325),
        (None, 0.35, 11_325),
    ],

    # 2027 basis year
    (2027, "married_one_child"): [
        (20_000, 0.00, 0),
        (30_000, 0.15, 3_000),
        (60_000, 0.25, 6_000),
        (None, 0.35, 12_000),
    ],
    (2027, "married_two_plus_children"): [
        (30_000, 0.00, 0),
        (41_000, 0.15, 4_500),
        (60_000, 0.25, 8_600),
        (None, 0.35, 14_600),
    ],
    (2027, "parent_one_child"): [
        (16_000, 0.00, 0),
        (24_500, 0.15, 2_400),
        (60_000, 0.25, 4_850),
        (None, 0.35, 10_850),
    ],
    (2027, "parent_two_plus_children"): [
        (24_000, 0.00, 0),
        (33_500, 0.15, 3_600),
        (60_000, 0.25, 6_950),
        (None, 0.35, 12_950),
    ],

    # 2028 basis year
    (2028, "married_one_child"): [
        (22_500, 0.00, 0),
        (33_500, 0.15, 3_375),
        (60_000, 0.25, 6_725),
        (None, 0.35, 12_725),
    ],
    (2028, "married_two_plus_children"): [
        (37_000, 0.00, 0),
        (50_000, 0.15, 5_550),
        (60_000, 0.25, 10_550),
        (None, 0.35, 16_550),
    ],
    (2028, "parent_one_child"): [
        (18_000, 0.00, 0),
        (28_000, 0.15, 2_700),
        (60_000, 0.25, 5_500),
        (None, 0.35, 11_500),
    ],
    (2028, "parent_two_plus_children"): [
        (30_000, 0.00, 0),
        (42_000, 0.15, 4_500),
        (60_000, 0.25, 8_700),
        (None, 0.35, 14_700),
    ],
}

# ── Income Tax: non-resident (2008 onwards, any status) ──────────────
NON_RESIDENT_BRACKETS = [
    (700, 0.00, 0),
    (3_100, 0.20, 140),
    (7_800, 0.30, 450),
    (None, 0.35, 840),
]

TAX_STATUSES = {
    "single": "Single",
    "married": "Married",
    "married_one_child": "Married with One Child",
    "married_two_plus_children": "Married with Two or More Children",
    "parent_one_child": "Parent with One Child",
    "parent_two_plus_children": "Parent with Two or More Children",
}
RESIDENCIES = ("resident", "non_resident")

# ── Part-time income at the flat rate ────────────────────────────────
PART_TIME_FLAT_RATE = 0.10
PART_TIME_CEILINGS = {
    "employment": 10_000,
    "self_employment": 12_000,
}

# ── Government bonus (COLA) ──────────────────────────────────────────
# 121.36 + 135.10 + 121.16 + 135.10
GOV_BONUS = 512.72
GOV_BONUS_CHARGEABLE_YEARS = (2026, 2027, 2028)

# ── Social Security Contributions (Class 1) ──────────────────────────
SSC_RATE = 0.10
WEEKS_PER_YEAR = 52

# Percentage-with-cap categories: weekly cap.
SSC_STUDENT_CAPS = {
    "student_under_18": 4.38,
    "student_18_plus": 7.94,
}

# Banded categories: (lower weekly threshold, upper weekly threshold,
# weekly minimum, weekly maximum).
SSC_EMPLOYED_BANDS = {
    "employed_under_18": (221.78, 544.28, 6.62, 54.43),
    "employed_born_before_1962": (221.78, 451.91, 22.18, 45.19),
    "employed_born_1962_or_later": (221.78, 544.28, 22.18, 54.43),
}

SSC_EXEMPT = "exempt"
SSC_DEFAULT_CATEGORY = "employed_born_1962_or_later"

SSC_CATEGORIES = {
    "employed_born_1962_or_later": "Employed (18 years old and over, born on or after 1 Jan 1962)",
    "employed_born_before_1962": "Employed (18 years old and over, born on or before 31 Dec 1961)",
    "employed_under_18": "Employed (under 18 years old)",
    "student_18_plus": "Student (18 years old and over)",
    "student_under_18": "Student (under 18 years old)",
    "exempt": "Exempt from paying NI/SSC",
}

# ── Rental income ────────────────────────────────────────────────────
RENTAL_MAINTENANCE_ALLOWANCE = 0.20
RENTAL_REGULAR_RATE = 0.35
RENTAL_FINAL_RATE = 0.15
RENTAL_ELECTIONS = ("yes", "no", "not_applicable")

# ── Late filing penalties ────────────────────────────────────────────
# Tiers: (months late up to and including, penalty, label).
# The last tier is the catch-all (None).
PENALTY_TIERS = {
    "Individual": [
        (6, 10, "Within 6 months"),
        (12, 50, "Later than 6 but within 12 months"),
        (18, 100, "Later than 12 but within 18 months"),
        (24, 150, "Later than 18 but within 24 months"),
        (36, 200, "Later than 24 but within 36 months"),
        (48, 300, "Later than 36 but within 48 months"),
        (60, 400, "Later than 48 but within 60 months"),
        (None, 500, "Later than 60 months"),
    ],
    "Corporate": [
        (6, 50, "Within 6 months"),
        (12, 200, "Later than 6 but within 12 months"),
        (18, 400, "Later than 12 but within 18 months"),
        (24, 600, "Later than 18 but within 24 months"),
        (36, 800, "Later than 24 but within 36 months"),
        (48, 1_000, "Later than 36 but within 48 months"),
        (60, 1_200, "Later than 48 but within 60 months"),
        (None, 1_500, "Later than 60 months"),
    ],
}
TAXPAYER_TYPES = ("Individual", "Corporate")

# ── Deadlines ────────────────────────────────────────────────────────
INDIVIDUAL_FILING_DEADLINE = (9, 30)     # 30 September of tax year + 1
INDIVIDUAL_PAYMENT_DEADLINE = (6, 30)    # 30 June of tax year + 1
CORPORATE_FILING_MONTHS = 9
CORPORATE_PAYMENT_MONTHS = 9
CORPORATE_PAYMENT_MONTHS_DDT10 = 18

# ── Interest on late payment ─────────────────────────────────────────
# Regimes: (start, end, monthly rate, label). Dates are literal
# calendar boundaries and are not inferred from one another.
INTEREST_PERIODS = [
    ("1900-01-01", "2008-12-31", 0.0100, "Up to Dec 2008 (1% monthly)"),
    ("2009-01-01", "2013-12-31", 0.0075, "Jan 2009 - Dec 2013 (0.75% monthly)"),
    ("2014-01-01", "2019-12-31", 0.0054, "Jan 2014 - Dec 2019 (0.54% monthly)"),
    ("2020-01-01", "2022-05-31", 0.0033, "Jan 2020 - May 2022 (0.33% monthly)"),
    ("2022-06-01", "2099-12-31", 0.0060, "Jun 2022 onwards (0.6% monthly)"),
]
AVG_DAYS_PER_MONTH = 30.44

# ── Employment notice periods ────────────────────────────────────────
PROBATION_MONTHS = 6
# Bands: (service months up to and including, weeks of notice).
NOTICE_BANDS = [
    (1, 0),
    (6, 1),
    (24, 2),
    (48, 4),
    (84, 8),
]
NOTICE_LONG_SERVICE_BASE_YEARS = 7
NOTICE_LONG_SERVICE_BASE_WEEKS = 8
NOTICE_MAX_WEEKS = 12

# ── Audit exemption ──────────────────────────────────────────────────
AUDIT_POST_2024_FROM = 2024
RULE_3_TURNOVER_LIMIT = 80_000
RULE_6_BALANCE_SHEET_LIMIT = 46_600
RULE_6_TURNOVER_LIMIT = 93_000
RULE_6_EMPLOYEE_LIMIT = 2
SMALL_GROUP_BALANCE_SHEET_LIMIT = (4_000_000, 4_800_000)   # (net, gross)
SMALL_GROUP_TURNOVER_LIMIT = (8_000_000, 9_600_000)        # (net, gross)
SMALL_GROUP_EMPLOYEE_LIMIT = 50
