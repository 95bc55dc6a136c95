"""
Audit-exemption questionnaire for Maltese companies.

The answers route a company to one qualifying path, and that path's
criteria decide the outcome:

* ``RULE_3``      startups led by qualified individuals (post-2024 only)
* ``RULE_6``      small companies under Article 185(2)
* ``SMALL_GROUP`` small groups, followed by a second Rule 6 check

Companies registered under the Merchant Shipping Act are exempt outright.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import config as cfg
from logging_config import setup_logger

logger = setup_logger(__name__)


class Outcome(str, Enum):
    MERCHANT_EXEMPT = "MERCHANT_EXEMPT"
    STARTUP_EXEMPT = "STARTUP_EXEMPT"
    SMALL_EXEMPT = "SMALL_EXEMPT"
    REVIEW_REQUIRED = "REVIEW_REQUIRED"
    AUDIT_REQUIRED = "AUDIT_REQUIRED"
    INCOMPLETE = "INCOMPLETE"

    @property
    def label(self) -> str:
        return _OUTCOME_LABELS[self]


_OUTCOME_LABELS = {
    Outcome.MERCHANT_EXEMPT: "Exempt (Merchant Shipping)",
    Outcome.STARTUP_EXEMPT: "Exempt (Rule 3 startup)",
    Outcome.SMALL_EXEMPT: "Exempt (Rule 6 small company)",
    Outcome.REVIEW_REQUIRED: "Review report required",
    Outcome.AUDIT_REQUIRED: "Audit required",
    Outcome.INCOMPLETE: "Incomplete",
}

RULE_3 = "RULE_3"
RULE_6 = "RULE_6"
SMALL_GROUP = "SMALL_GROUP"

POST_2024 = "post_2024"
PRE_2024 = "pre_2024"


# ─── Answers ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AuditAnswers:
    """Questionnaire answers; ``None`` means not answered yet.

    ``first_question`` asks whether the company is owned exclusively by
    individuals for companies incorporated from 2024, and whether it is
    a parent entity for older companies. ``parent_entity`` is only asked
    separately on the post-2024 path.
    """

    incorporation_year: Optional[int] = None
    first_question: Optional[bool] = None
    merchant_shipping: Optional[bool] = None
    parent_entity: Optional[bool] = None
    article_174_exempt: Optional[bool] = None
    # Rule 3
    rule3_first_year_end: str = ""
    rule3_qualifications: Optional[bool] = None
    rule3_within_three_years: Optional[bool] = None
    rule3_turnover: Optional[bool] = None
    # Rule 6
    rule6_balance_sheet: Optional[bool] = None
    rule6_turnover: Optional[bool] = None
    rule6_employees: Optional[bool] = None
    # Small group
    small_group_balance_sheet: Optional[bool] = None
    small_group_turnover: Optional[bool] = None
    small_group_employees: Optional[bool] = None
    # Rule 6, second check after the small group test
    rule6_second_balance_sheet: Optional[bool] = None
    rule6_second_turnover: Optional[bool] = None
    rule6_second_employees: Optional[bool] = None

    def __post_init__(self) -> None:
        if self.incorporation_year is not None and self.incorporation_year < cfg.MIN_INCORPORATION_YEAR:
            raise ValueError(f"Incorporation year must be {cfg.MIN_INCORPORATION_YEAR} or later")

    @property
    def bucket(self) -> Optional[str]:
        if self.incorporation_year is None:
            return None
        return POST_2024 if self.incorporation_year >= cfg.AUDIT_POST_2024_FROM else PRE_2024

    @property
    def rule3_criteria(self) -> Tuple[Optional[bool], ...]:
        return (self.rule3_qualifications, self.rule3_within_three_years, self.rule3_turnover)

    @property
    def rule6_criteria(self) -> Tuple[Optional[bool], ...]:
        return (self.rule6_balance_sheet, self.rule6_turnover, self.rule6_employees)

    @property
    def small_group_criteria(self) -> Tuple[Optional[bool], ...]:
        return (self.small_group_balance_sheet, self.small_group_turnover, self.small_group_employees)

    @property
    def rule6_second_criteria(self) -> Tuple[Optional[bool], ...]:
        return (self.rule6_second_balance_sheet, self.rule6_second_turnover, self.rule6_second_employees)


ANSWER_FIELDS = [f.name for f in fields(AuditAnswers)]


# ─── Qualifying path ─────────────────────────────────────────────────
# Keyed by (bucket, first question, parent entity, Article 174 exempt).
# None in a key means the question is not asked on that branch.

QUALIFY_PATHS: Dict[Tuple[str, bool, Optional[bool], Optional[bool]], str] = {
    (POST_2024, True, None, None): RULE_3,
    (POST_2024, False, False, None): RULE_6,
    (POST_2024, False, True, False): SMALL_GROUP,
    (POST_2024, False, True, True): RULE_6,
    (PRE_2024, False, None, None): RULE_6,
    (PRE_2024, True, None, False): SMALL_GROUP,
    (PRE_2024, True, None, True): RULE_6,
}


def _path_key(answers: AuditAnswers) -> Optional[Tuple[str, bool, Optional[bool], Optional[bool]]]:
    bucket = answers.bucket
    first = answers.first_question
    if bucket is None or first is None:
        return None

    if bucket == POST_2024:
        if first:
            return (bucket, True, None, None)
        parent = answers.parent_entity
        art174 = answers.article_174_exempt if parent else None
        return (bucket, False, parent, art174)

    art174 = answers.article_174_exempt if first else None
    return (bucket, first, None, art174)


def qualify_path(answers: AuditAnswers) -> Optional[str]:
    """Rule the company is tested under, or ``None`` if not yet known.

    Merchant shipping companies never reach a qualifying path.
    """
    if answers.merchant_shipping is not False:
        return None
    key = _path_key(answers)
    if key is None:
        return None
    return QUALIFY_PATHS.get(key)


# ─── Conclusion ──────────────────────────────────────────────────────

MERCHANT_MESSAGE = "Your company is exempt from preparing either an audit or a review report."
MERCHANT_DETAILS = (
    "Companies registered under the Merchant Shipping Act and exempt under regulation 64 "
    "of the Merchant Shipping Act (Cap. 234) are considered to meet audit requirements under tax law."
)
STARTUP_MESSAGE = (
    "The company satisfies all the criteria; therefore it is exempt from having to produce "
    "an auditor's report for its first two years."
)
STARTUP_FAILED_MESSAGE = (
    "The company did not meet all the Rule 3 startup criteria - an audit is required "
    "for the latest financial period."
)
SMALL_EXEMPT_MESSAGE = (
    "The company meets all three criteria; therefore, neither an audit nor a review report "
    "is required as a tax requirement for the latest financial period."
)
REVIEW_MESSAGE = (
    "The company meets two out of the three criteria; therefore, a review report (a lighter "
    "form of assurance than an audit) will suffice for the latest financial accounting period."
)
AUDIT_MESSAGE = (
    "The company did not meet criteria for audit report exemption and a review report - "
    "an audit is required for the latest financial period."
)
GROUP_AUDIT_MESSAGE = (
    "The group did not meet small group criteria - an audit is required for the latest "
    "financial period."
)
INCOMPLETE_MESSAGE = "Please complete all questions to see your audit obligations."


@dataclass
class AuditConclusion:
    outcome: Outcome
    message: str
    details: str = ""
    path: Optional[str] = None

    @property
    def complete(self) -> bool:
        return self.outcome is not Outcome.INCOMPLETE


def _answered(criteria: Sequence[Optional[bool]]) -> bool:
    return all(c is not None for c in criteria)


def _count(criteria: Sequence[Optional[bool]]) -> int:
    return sum(1 for c in criteria if c)


def _rule6_conclusion(criteria: Sequence[Optional[bool]], path: str) -> AuditConclusion:
    met = _count(criteria)
    if met == 3:
        return AuditConclusion(Outcome.SMALL_EXEMPT, SMALL_EXEMPT_MESSAGE, path=path)
    if met == 2:
        return AuditConclusion(Outcome.REVIEW_REQUIRED, REVIEW_MESSAGE, path=path)
    return AuditConclusion(Outcome.AUDIT_REQUIRED, AUDIT_MESSAGE, path=path)


def audit_conclusion(answers: AuditAnswers) -> AuditConclusion:
    """Classify the company's audit obligation.

    Each path counts how many of its three criteria are met:

    =============  ==========================================
    Path           Outcome
    =============  ==========================================
    Rule 3         3 met: startup exempt, otherwise audit
    Rule 6         3: exempt, 2: review, 0-1: audit
    Small group    2+ met: second Rule 6 check, else audit
    =============  ==========================================

    Returns ``Outcome.INCOMPLETE`` until every question on the path has
    been answered.
    """
    if answers.merchant_shipping:
        return AuditConclusion(Outcome.MERCHANT_EXEMPT, MERCHANT_MESSAGE, MERCHANT_DETAILS)

    path = qualify_path(answers)
    conclusion = AuditConclusion(Outcome.INCOMPLETE, INCOMPLETE_MESSAGE, path=path)

    if path == RULE_3 and _answered(answers.rule3_criteria):
        if _count(answers.rule3_criteria) == 3:
            conclusion = AuditConclusion(Outcome.STARTUP_EXEMPT, STARTUP_MESSAGE, path=path)
        else:
            conclusion = AuditConclusion(Outcome.AUDIT_REQUIRED, STARTUP_FAILED_MESSAGE, path=path)

    elif path == RULE_6 and _answered(answers.rule6_criteria):
        conclusion = _rule6_conclusion(answers.rule6_criteria, path)

    elif path == SMALL_GROUP and _answered(answers.small_group_criteria):
        if _count(answers.small_group_criteria) < 2:
            conclusion = AuditConclusion(Outcome.AUDIT_REQUIRED, GROUP_AUDIT_MESSAGE, path=path)
        elif _answered(answers.rule6_second_criteria):
            conclusion = _rule6_conclusion(answers.rule6_second_criteria, path)

    logger.debug("Audit path %s -> %s", path, conclusion.outcome.value)
    return conclusion


# ─── Questions shown for the current answers ─────────────────────────

_RULE6_QUESTIONS = [
    ("balance_sheet", f"Was your company's balance sheet total equal or less than €{cfg.RULE_6_BALANCE_SHEET_LIMIT:,}?"),
    ("turnover", f"Was your company's annual turnover equal or less than €{cfg.RULE_6_TURNOVER_LIMIT:,}?"),
    ("employees", f"Was the average number of employees equal or less than {cfg.RULE_6_EMPLOYEE_LIMIT}?"),
]


def visible_questions(answers: AuditAnswers) -> List[Tuple[str, str]]:
    """``(field, question)`` pairs to ask, given the answers so far."""
    bucket = answers.bucket
    if bucket is None:
        return []

    parent_q = "Is your company considered a Parent Entity or owns more than 50% of another company/ies?"
    art174_q = ("Is your company exempt from preparing consolidated accounts under Article 174 "
                "of the Companies Act?")
    first_q = "Is your company exclusively owned by individuals?" if bucket == POST_2024 else parent_q

    out = [
        ("first_question", first_q),
        ("merchant_shipping", "Is your company registered under the Merchant Shipping Act?"),
    ]
    if answers.merchant_shipping is not False:
        return out

    if bucket == POST_2024 and answers.first_question is False:
        out.append(("parent_entity", parent_q))
        if answers.parent_entity:
            out.append(("article_174_exempt", art174_q))
    elif bucket == PRE_2024 and answers.first_question:
        out.append(("article_174_exempt", art174_q))

    path = qualify_path(answers)
    if path == RULE_3:
        out += [
            ("rule3_first_year_end", "When is your first financial year-end? (e.g. December 2024)"),
            ("rule3_qualifications", "Do all shareholders hold educational qualifications at MQF Level 3 or higher?"),
            ("rule3_within_three_years", "Was your company established within three years of shareholders "
                                         "obtaining their qualifications?"),
            ("rule3_turnover", f"Did your company's annual turnover not exceed €{cfg.RULE_3_TURNOVER_LIMIT:,} "
                               "(or proportionate if less than 12 months)?"),
        ]
    elif path == RULE_6:
        out += [(f"rule6_{name}", text) for name, text in _RULE6_QUESTIONS]
    elif path == SMALL_GROUP:
        net_bs, gross_bs = cfg.SMALL_GROUP_BALANCE_SHEET_LIMIT
        net_to, gross_to = cfg.SMALL_GROUP_TURNOVER_LIMIT
        out += [
            ("small_group_balance_sheet", f"Does your Group's aggregate balance sheet total not exceed "
                                          f"€{net_bs:,} net or €{gross_bs:,} gross?"),
            ("small_group_turnover", f"Does your Group's aggregate turnover not exceed €{net_to:,} net "
                                     f"or €{gross_to:,} gross?"),
            ("small_group_employees", f"Does your group's aggregate number of employees not exceed "
                                      f"{cfg.SMALL_GROUP_EMPLOYEE_LIMIT}?"),
        ]
        if _answered(answers.small_group_criteria) and _count(answers.small_group_criteria) >= 2:
            out += [(f"rule6_second_{name}", text) for name, text in _RULE6_QUESTIONS]
    return out
