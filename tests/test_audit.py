"""
Unit tests for the audit-exemption questionnaire.
"""

import pytest

from audit import (
    RULE_3,
    RULE_6,
    SMALL_GROUP,
    AuditAnswers,
    Outcome,
    audit_conclusion,
    qualify_path,
    visible_questions,
)


def _answers(**kw):
    kw.setdefault("merchant_shipping", False)
    return AuditAnswers(**kw)


class TestQualifyPath:
    @pytest.mark.parametrize("kw,path", [
        (dict(incorporation_year=2024, first_question=True), RULE_3),
        (dict(incorporation_year=2025, first_question=False, parent_entity=False), RULE_6),
        (dict(incorporation_year=2024, first_question=False, parent_entity=True,
              article_174_exempt=False), SMALL_GROUP),
        (dict(incorporation_year=2024, first_question=False, parent_entity=True,
              article_174_exempt=True), RULE_6),
        (dict(incorporation_year=2010, first_question=False), RULE_6),
        (dict(incorporation_year=2023, first_question=True, article_174_exempt=False), SMALL_GROUP),
        (dict(incorporation_year=2023, first_question=True, article_174_exempt=True), RULE_6),
    ])
    def test_paths(self, kw, path):
        assert qualify_path(_answers(**kw)) == path

    def test_unknown_until_answered(self):
        assert qualify_path(_answers(incorporation_year=2024)) is None
        assert qualify_path(_answers(incorporation_year=2024, first_question=False)) is None
        assert qualify_path(_answers(incorporation_year=2023, first_question=True)) is None

    def test_merchant_answer_required(self):
        answers = AuditAnswers(incorporation_year=2024, first_question=True)
        assert qualify_path(answers) is None

    def test_year_before_1900_rejected(self):
        with pytest.raises(ValueError):
            AuditAnswers(incorporation_year=1899)


class TestConclusion:
    def test_merchant_shipping_exempt(self):
        c = audit_conclusion(AuditAnswers(incorporation_year=2020, merchant_shipping=True))
        assert c.outcome is Outcome.MERCHANT_EXEMPT
        assert c.outcome.label == "Exempt (Merchant Shipping)"
        assert "Merchant Shipping Act" in c.details
        assert c.path is None

    def test_startup_exempt(self):
        c = audit_conclusion(_answers(
            incorporation_year=2024, first_question=True, rule3_qualifications=True,
            rule3_within_three_years=True, rule3_turnover=True,
        ))
        assert c.outcome is Outcome.STARTUP_EXEMPT
        assert c.path == RULE_3

    def test_startup_criterion_failed(self):
        c = audit_conclusion(_answers(
            incorporation_year=2024, first_question=True, rule3_qualifications=True,
            rule3_within_three_years=False, rule3_turnover=True,
        ))
        assert c.outcome is Outcome.AUDIT_REQUIRED

    @pytest.mark.parametrize("criteria,outcome", [
        ((True, True, True), Outcome.SMALL_EXEMPT),
        ((True, False, True), Outcome.REVIEW_REQUIRED),
        ((False, False, True), Outcome.AUDIT_REQUIRED),
        ((False, False, False), Outcome.AUDIT_REQUIRED),
    ])
    def test_rule6(self, criteria, outcome):
        bs, turnover, employees = criteria
        c = audit_conclusion(_answers(
            incorporation_year=2015, first_question=False, rule6_balance_sheet=bs,
            rule6_turnover=turnover, rule6_employees=employees,
        ))
        assert c.outcome is outcome
        assert c.path == RULE_6

    def test_small_group_fails(self):
        c = audit_conclusion(_answers(
            incorporation_year=2015, first_question=True, article_174_exempt=False,
            small_group_balance_sheet=True, small_group_turnover=False, small_group_employees=False,
        ))
        assert c.outcome is Outcome.AUDIT_REQUIRED
        assert "group" in c.message

    def test_small_group_then_rule6(self):
        base = dict(
            incorporation_year=2015, first_question=True, article_174_exempt=False,
            small_group_balance_sheet=True, small_group_turnover=True, small_group_employees=False,
        )
        assert audit_conclusion(_answers(**base)).outcome is Outcome.INCOMPLETE
        c = audit_conclusion(_answers(
            **base, rule6_second_balance_sheet=True, rule6_second_turnover=True,
            rule6_second_employees=False,
        ))
        assert c.outcome is Outcome.REVIEW_REQUIRED
        assert c.path == SMALL_GROUP

    def test_incomplete(self):
        c = audit_conclusion(_answers(incorporation_year=2015, first_question=False,
                                      rule6_balance_sheet=True))
        assert c.outcome is Outcome.INCOMPLETE
        assert not c.complete

    def test_nothing_answered(self):
        assert audit_conclusion(AuditAnswers()).outcome is Outcome.INCOMPLETE


class TestVisibleQuestions:
    def _fields(self, answers):
        return [f for f, _ in visible_questions(answers)]

    def test_nothing_before_year(self):
        assert visible_questions(AuditAnswers()) == []

    def test_first_questions_depend_on_year(self):
        post = visible_questions(AuditAnswers(incorporation_year=2024))
        pre = visible_questions(AuditAnswers(incorporation_year=2000))
        assert "individuals" in post[0][1]
        assert "Parent Entity" in pre[0][1]

    def test_merchant_stops_questionnaire(self):
        assert self._fields(AuditAnswers(incorporation_year=2024, merchant_shipping=True)) == [
            "first_question", "merchant_shipping",
        ]

    def test_post_2024_parent_branch(self):
        fields = self._fields(_answers(incorporation_year=2024, first_question=False,
                                       parent_entity=True))
        assert fields == ["first_question", "merchant_shipping", "parent_entity", "article_174_exempt"]

    def test_rule3_questions(self):
        fields = self._fields(_answers(incorporation_year=2024, first_question=True))
        assert "rule3_first_year_end" in fields
        assert "rule6_turnover" not in fields

    def test_second_rule6_only_after_group_passes(self):
        base = dict(incorporation_year=2015, first_question=True, article_174_exempt=False,
                    small_group_balance_sheet=True, small_group_turnover=False)
        assert "rule6_second_turnover" not in self._fields(_answers(**base, small_group_employees=False))
        assert "rule6_second_turnover" in self._fields(_answers(**base, small_group_employees=True))
