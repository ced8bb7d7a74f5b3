import pytest
from decimal import Decimal
from django.core.exceptions import ValidationError

from teacher_eval.models import EvalStatus, Evaluation, Indicator, ObjectionStatus
from teacher_eval.services import evaluation_flow as flow


@pytest.fixture
def two_indicators(create_indicator):
    return (
        create_indicator(weight=60, criteria=("a", "b")),
        create_indicator(weight=40, criteria=("c",)),
    )


def score_everything(evaluation, indicators, value_ratio=1.0):
    for ind in indicators:
        for idx in range(ind.criteria.count()):
            flow.apply_sub_score(evaluation, ind.indicator_id, idx, float(ind.weight) * value_ratio)


@pytest.mark.django_db
class TestSaveEvaluation:
    def test_upsert_keyed_by_teacher_and_period(self, create_teacher):
        teacher = create_teacher()
        first = flow.save_evaluation(teacher, "P1", general_notes="v1")
        second = flow.save_evaluation(teacher, "P1", general_notes="v2")
        assert first.pk == second.pk
        assert Evaluation.objects.count() == 1
        assert Evaluation.objects.get().general_notes == "v2"
        flow.save_evaluation(teacher, "P2")
        assert Evaluation.objects.count() == 2

    def test_snapshots_school_names_and_total(self, create_teacher, school):
        teacher = create_teacher()
        ev = flow.save_evaluation(teacher, "P1", scores={"x": {"score": 12.125}, "y": {"score": 7}})
        assert ev.school == school
        assert ev.evaluator_name == school.evaluator_name
        assert ev.manager_name == school.manager_name
        assert ev.total_score == Decimal("19.13")

    def test_period_is_required(self, create_teacher):
        with pytest.raises(ValidationError):
            flow.save_evaluation(create_teacher(), "")

    def test_completed_evaluation_is_read_only(self, create_teacher):
        teacher = create_teacher()
        ev = flow.save_evaluation(teacher, "P1")
        Evaluation.objects.filter(pk=ev.pk).update(status=EvalStatus.COMPLETED)
        with pytest.raises(ValidationError):
            flow.save_evaluation(teacher, "P1", general_notes="late edit")


@pytest.mark.django_db
class TestScoreEdits:
    def test_accepted_sub_score_updates_scores_and_total(self, create_teacher, two_indicators):
        big, small = two_indicators
        ev = flow.save_evaluation(create_teacher(), "P1")
        entry, accepted = flow.apply_sub_score(ev, big.indicator_id, 0, "54")
        assert accepted is True
        assert entry["score"] == 54.0
        assert entry["level"] == 5
        ev.refresh_from_db()
        assert ev.scores[str(big.indicator_id)]["sub_scores"] == [54.0, None]
        assert ev.total_score == Decimal("54.00")

    def test_out_of_range_leaves_evaluation_untouched(self, create_teacher, two_indicators):
        big, _ = two_indicators
        ev = flow.save_evaluation(create_teacher(), "P1")
        flow.apply_sub_score(ev, big.indicator_id, 0, 30)
        before = Evaluation.objects.get(pk=ev.pk)
        entry, accepted = flow.apply_sub_score(ev, big.indicator_id, 1, 61)
        assert accepted is False
        assert entry["sub_scores"] == [30.0, None]
        after = Evaluation.objects.get(pk=ev.pk)
        assert after.scores == before.scores
        assert after.updated_at == before.updated_at

    def test_category_weight_is_the_maximum(self, create_teacher, create_indicator):
        ind = create_indicator(weight=10, criteria=("a",), category_weights={"LAB": 20})
        ev = flow.save_evaluation(create_teacher(category="LAB"), "P1")
        _, accepted = flow.apply_sub_score(ev, ind.indicator_id, 0, 18)
        assert accepted is True
        ev_teacher = flow.save_evaluation(create_teacher(), "P1")
        _, accepted = flow.apply_sub_score(ev_teacher, ind.indicator_id, 0, 18)
        assert accepted is False

    def test_unknown_or_inapplicable_indicator(self, create_teacher, create_indicator):
        lab_only = create_indicator(applicable_categories=["LAB"])
        ev = flow.save_evaluation(create_teacher(), "P1")
        with pytest.raises(ValidationError):
            flow.apply_sub_score(ev, lab_only.indicator_id, 0, 5)
        with pytest.raises(ValidationError):
            flow.apply_sub_score(ev, "00000000-0000-0000-0000-000000000000", 0, 5)

    def test_apply_field(self, create_teacher, two_indicators):
        big, _ = two_indicators
        ev = flow.save_evaluation(create_teacher(), "P1")
        entry, accepted = flow.apply_field(ev, big.indicator_id, "strengths", "تفاعل ممتاز")
        assert accepted and entry["strengths"] == "تفاعل ممتاز"
        _, accepted = flow.apply_field(ev, big.indicator_id, "score", "100")
        assert accepted is False


@pytest.mark.django_db
class TestLifecycle:
    def test_complete_requires_every_indicator(self, create_teacher, two_indicators):
        big, small = two_indicators
        ev = flow.save_evaluation(create_teacher(), "P1")
        score_everything(ev, [big])
        with pytest.raises(ValidationError) as exc:
            flow.complete_evaluation(ev)
        assert small.text in " ".join(exc.value.messages)

        score_everything(ev, [small], value_ratio=0.5)
        flow.complete_evaluation(ev)
        ev.refresh_from_db()
        assert ev.status == EvalStatus.COMPLETED
        assert ev.total_score == Decimal("80.00")

    def test_completed_refuses_edits_until_reverted(self, create_teacher, two_indicators):
        big, small = two_indicators
        ev = flow.save_evaluation(create_teacher(), "P1")
        score_everything(ev, two_indicators)
        flow.complete_evaluation(ev)
        with pytest.raises(ValidationError):
            flow.apply_sub_score(ev, big.indicator_id, 0, 1)
        with pytest.raises(ValidationError):
            flow.complete_evaluation(ev)

        flow.revert_to_draft(ev)
        assert ev.status == EvalStatus.DRAFT
        _, accepted = flow.apply_sub_score(ev, big.indicator_id, 0, 1)
        assert accepted
        with pytest.raises(ValidationError):
            flow.revert_to_draft(ev)

    def test_orphan_scores_still_count(self, create_teacher, two_indicators):
        big, small = two_indicators
        ev = flow.save_evaluation(create_teacher(), "P1")
        score_everything(ev, two_indicators)
        Indicator.objects.filter(pk=small.pk).delete()
        ev.refresh_from_db()
        assert str(small.indicator_id) in ev.scores
        assert flow.missing_indicators(ev) == []
        assert ev.total_score == Decimal("100.00")


@pytest.mark.django_db
class TestObjectionsAndEvidence:
    @pytest.fixture
    def completed(self, create_teacher, two_indicators):
        ev = flow.save_evaluation(create_teacher(), "P1")
        score_everything(ev, two_indicators)
        return flow.complete_evaluation(ev)

    def test_objection_flow(self, completed):
        flow.submit_objection(completed, "  الدرجة غير عادلة ")
        assert completed.objection_status == ObjectionStatus.PENDING
        assert completed.objection_text == "الدرجة غير عادلة"
        with pytest.raises(ValidationError):
            flow.submit_objection(completed, "مرة أخرى")

        flow.resolve_objection(completed, ObjectionStatus.REJECTED)
        assert completed.objection_status == ObjectionStatus.REJECTED
        with pytest.raises(ValidationError):
            flow.resolve_objection(completed, ObjectionStatus.ACCEPTED)

    def test_objection_rules(self, create_teacher, completed):
        with pytest.raises(ValidationError):
            flow.submit_objection(completed, "   ")
        draft = flow.save_evaluation(create_teacher(), "P1")
        with pytest.raises(ValidationError):
            flow.submit_objection(draft, "نص")
        with pytest.raises(ValidationError):
            flow.resolve_objection(completed, ObjectionStatus.ACCEPTED)   # nothing pending
        flow.submit_objection(completed, "نص")
        with pytest.raises(ValidationError):
            flow.resolve_objection(completed, ObjectionStatus.PENDING)

    def test_evidence_links(self, completed, two_indicators):
        big, _ = two_indicators
        flow.add_evidence_link(completed, big.indicator_id, "https://example.com/a", "ملف الإنجاز")
        completed.refresh_from_db()
        assert completed.teacher_evidence_links == [
            {"indicator_id": str(big.indicator_id), "url": "https://example.com/a", "description": "ملف الإنجاز"}
        ]
        with pytest.raises(ValidationError):
            flow.add_evidence_link(completed, big.indicator_id, "", "no url")


@pytest.mark.django_db
def test_history_and_status(create_teacher):
    teacher = create_teacher()
    assert flow.teacher_status(teacher) is None
    assert flow.evaluation_history(teacher) == []
    flow.save_evaluation(teacher, "P1", scores={"x": {"score": 95}}, eval_date="2025-01-10")
    flow.save_evaluation(teacher, "P2", scores={"x": {"score": 60}}, eval_date="2025-05-10")
    history = flow.evaluation_history(teacher)
    assert [row["period_name"] for row in history] == ["P2", "P1"]
    assert [row["mastery_level"] for row in history] == ["مبتدئ", "متميز"]
    assert flow.teacher_status(teacher) == EvalStatus.DRAFT
