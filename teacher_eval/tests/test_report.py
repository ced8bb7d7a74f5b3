import pytest

from teacher_eval.models import Indicator, TeacherCategory
from teacher_eval.services.evaluation_flow import apply_field, apply_sub_score, save_evaluation
from teacher_eval.services.report import MISSING_INDICATOR_TEXT, build_report


@pytest.mark.django_db
def test_report_rows_follow_indicator_order(create_teacher, create_indicator):
    first = create_indicator(text="الأول", weight=60, criteria=("a",))
    second = create_indicator(text="الثاني", weight=40, criteria=("a", "b"))
    create_indicator(text="للمختبر فقط", applicable_categories=["LAB"])
    ev = save_evaluation(create_teacher(), "الفصل الأول", general_notes="ملاحظات عامة")
    apply_sub_score(ev, first.pk, 0, 57)
    apply_sub_score(ev, second.pk, 0, 20)
    apply_field(ev, first.pk, "strengths", "إدارة صف متميزة")

    report = build_report(ev)
    assert report["school"]["name"] == "Test School"
    assert report["school"]["evaluator_name"] == "المقيم"
    assert report["teacher"]["category"] == TeacherCategory.TEACHER.label
    assert report["period_name"] == "الفصل الأول"
    assert report["general_notes"] == "ملاحظات عامة"

    assert [row["text"] for row in report["rows"]] == ["الأول", "الثاني"]
    top, bottom = report["rows"]
    assert (top["weight"], top["score"], top["level"], top["mastery"]) == (60.0, 57.0, 5, "متميز")
    assert (bottom["score"], bottom["level"], bottom["mastery"]) == (20.0, 2, "مبتدئ")
    assert top["strengths"] == "إدارة صف متميزة"
    assert bottom["strengths"] == ""
    assert report["total_score"] == 77.0
    assert report["mastery_level"] == "متمكن"


@pytest.mark.django_db
def test_report_keeps_scores_of_deleted_indicators(create_teacher, create_indicator):
    kept = create_indicator(text="باق", weight=50, criteria=("a",))
    gone = create_indicator(text="محذوف", weight=50, criteria=("a",))
    ev = save_evaluation(create_teacher(), "P1")
    apply_sub_score(ev, kept.pk, 0, 50)
    apply_sub_score(ev, gone.pk, 0, 40)
    Indicator.objects.filter(pk=gone.pk).delete()

    report = build_report(ev)
    orphan = report["rows"][-1]
    assert orphan["text"] == MISSING_INDICATOR_TEXT
    assert orphan["weight"] is None
    assert orphan["score"] == 40.0
    assert orphan["mastery"] == "--"
    assert report["total_score"] == 90.0


@pytest.mark.django_db
def test_report_for_unscored_indicator(create_teacher, create_indicator):
    create_indicator(text="فارغ", weight=100)
    report = build_report(save_evaluation(create_teacher(), "P1"))
    [row] = report["rows"]
    assert row["score"] == 0
    assert row["level"] == 0
    assert row["mastery"] == "--"
    assert report["mastery_level"] == "--"
