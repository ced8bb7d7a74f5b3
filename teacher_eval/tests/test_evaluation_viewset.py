import pytest
from django.urls import reverse

from teacher_eval.models import Evaluation, EvalStatus, ObjectionStatus
from teacher_eval.services import evaluation_flow as flow


def detail(name, evaluation):
    return reverse(f"evaluation-{name}", kwargs={"evaluation_id": evaluation.evaluation_id})


@pytest.fixture
def indicator(create_indicator):
    return create_indicator(weight=100, criteria=("a", "b"))


@pytest.fixture
def teacher_user(create_user):
    return create_user(role="TEACHER")


@pytest.fixture
def own_teacher(create_teacher, teacher_user):
    return create_teacher(user=teacher_user)


@pytest.mark.django_db
class TestEvaluationScoping:
    def test_principal_sees_only_own_schools(self, api_client, principal, create_school, create_teacher):
        mine = flow.save_evaluation(create_teacher(), "P1")
        other_school = create_school()
        flow.save_evaluation(create_teacher(school=other_school), "P1")

        api_client.force_authenticate(user=principal)
        res = api_client.get(reverse("evaluation-list"))
        assert res.status_code == 200
        assert [row["evaluation_id"] for row in res.data] == [str(mine.evaluation_id)]

    def test_teacher_sees_only_own_and_cannot_edit(self, api_client, own_teacher, teacher_user, create_teacher):
        mine = flow.save_evaluation(own_teacher, "P1")
        flow.save_evaluation(create_teacher(), "P1")

        api_client.force_authenticate(user=teacher_user)
        res = api_client.get(reverse("evaluation-list"))
        assert [row["evaluation_id"] for row in res.data] == [str(mine.evaluation_id)]
        res = api_client.post(reverse("evaluation-list"),
                              {"teacher_id": str(own_teacher.pk), "period_name": "P2"}, format="json")
        assert res.status_code == 403
        res = api_client.patch(detail("detail", mine), {"general_notes": "x"}, format="json")
        assert res.status_code == 403

    def test_admin_sees_everything(self, api_client, admin_user, create_teacher, create_school):
        flow.save_evaluation(create_teacher(), "P1")
        flow.save_evaluation(create_teacher(school=create_school()), "P1")
        api_client.force_authenticate(user=admin_user)
        assert len(api_client.get(reverse("evaluation-list")).data) == 2


@pytest.mark.django_db
class TestEvaluationWrites:
    def test_create_is_an_upsert(self, api_client, principal, create_teacher):
        teacher = create_teacher()
        api_client.force_authenticate(user=principal)
        payload = {"teacher_id": str(teacher.pk), "period_name": "الفصل الأول", "general_notes": "أولى"}
        first = api_client.post(reverse("evaluation-list"), payload, format="json")
        assert first.status_code == 201, first.data
        payload["general_notes"] = "ثانية"
        second = api_client.post(reverse("evaluation-list"), payload, format="json")
        assert second.status_code == 201
        assert first.data["evaluation_id"] == second.data["evaluation_id"]
        assert Evaluation.objects.get().general_notes == "ثانية"
        assert second.data["status"] == EvalStatus.DRAFT.label
        assert second.data["evaluator_name"] == "المقيم"

    def test_cannot_evaluate_foreign_teacher(self, api_client, principal, create_teacher, create_school):
        foreign = create_teacher(school=create_school())
        api_client.force_authenticate(user=principal)
        res = api_client.post(reverse("evaluation-list"),
                              {"teacher_id": str(foreign.pk), "period_name": "P1"}, format="json")
        assert res.status_code == 403
        assert not Evaluation.objects.exists()

    def test_teacher_and_period_are_fixed(self, api_client, principal, create_teacher):
        ev = flow.save_evaluation(create_teacher(), "P1")
        api_client.force_authenticate(user=principal)
        res = api_client.patch(detail("detail", ev), {"period_name": "P2"}, format="json")
        assert res.status_code == 400
        res = api_client.patch(detail("detail", ev), {"general_notes": "ملاحظة"}, format="json")
        assert res.status_code == 200
        assert res.data["general_notes"] == "ملاحظة"

    def test_score_action(self, api_client, principal, create_teacher, indicator):
        ev = flow.save_evaluation(create_teacher(), "P1")
        api_client.force_authenticate(user=principal)
        url = detail("score", ev)

        res = api_client.post(url, {"indicator_id": str(indicator.pk), "criterion_index": 0, "value": "95"},
                              format="json")
        assert res.status_code == 200
        assert res.data["accepted"] is True
        assert res.data["total_score"] == 95.0
        assert res.data["mastery_level"] == "متميز"

        res = api_client.post(url, {"indicator_id": str(indicator.pk), "criterion_index": 1, "value": "101"},
                              format="json")
        assert res.status_code == 200
        assert res.data["accepted"] is False
        assert res.data["score"]["sub_scores"] == [95.0, None]

        res = api_client.post(url, {"indicator_id": str(indicator.pk), "criterion_index": 0, "value": "abc"},
                              format="json")
        assert res.data["accepted"] is True
        assert res.data["total_score"] == 0.0
        assert res.data["mastery_level"] == "--"

    def test_field_action(self, api_client, principal, create_teacher, indicator):
        ev = flow.save_evaluation(create_teacher(), "P1")
        api_client.force_authenticate(user=principal)
        res = api_client.post(detail("field", ev),
                              {"indicator_id": str(indicator.pk), "field": "notes", "value": "جيد"}, format="json")
        assert res.status_code == 200
        assert res.data["score"]["notes"] == "جيد"
        res = api_client.post(detail("field", ev),
                              {"indicator_id": str(indicator.pk), "field": "score", "value": "1"}, format="json")
        assert res.status_code == 400

    def test_complete_and_revert(self, api_client, principal, create_teacher, indicator):
        ev = flow.save_evaluation(create_teacher(), "P1")
        api_client.force_authenticate(user=principal)
        res = api_client.post(detail("complete", ev))
        assert res.status_code == 400
        assert res.data["valid"] is False
        assert res.data["message"]

        flow.apply_sub_score(ev, indicator.pk, 0, 80)
        flow.apply_sub_score(ev, indicator.pk, 1, 90)
        res = api_client.post(detail("complete", ev))
        assert res.status_code == 200
        assert res.data["status"] == EvalStatus.COMPLETED.label
        assert res.data["total_score"] == "85.00"
        assert res.data["mastery_level"] == "متقدم"

        res = api_client.post(detail("score", ev), {"indicator_id": str(indicator.pk), "criterion_index": 0,
                                                    "value": "10"}, format="json")
        assert res.status_code == 400

        res = api_client.post(detail("revert", ev))
        assert res.status_code == 200
        assert res.data["status"] == EvalStatus.DRAFT.label
        assert api_client.post(detail("revert", ev)).status_code == 400

    def test_destroy(self, api_client, principal, create_teacher):
        ev = flow.save_evaluation(create_teacher(), "P1")
        api_client.force_authenticate(user=principal)
        res = api_client.delete(detail("detail", ev))
        assert res.status_code == 204
        assert not Evaluation.objects.exists()


@pytest.mark.django_db
class TestObjectionEndpoints:
    @pytest.fixture
    def completed(self, own_teacher, indicator):
        ev = flow.save_evaluation(own_teacher, "P1")
        flow.apply_sub_score(ev, indicator.pk, 0, 60)
        flow.apply_sub_score(ev, indicator.pk, 1, 60)
        return flow.complete_evaluation(ev)

    def test_teacher_objects_and_principal_resolves(self, api_client, completed, teacher_user, principal):
        api_client.force_authenticate(user=teacher_user)
        res = api_client.post(detail("objection", completed), {"objection_text": ""}, format="json")
        assert res.status_code == 400
        assert res.data["error"] == "الرجاء كتابة نص الاعتراض"
        res = api_client.post(detail("objection", completed), {"objection_text": "أطلب المراجعة"}, format="json")
        assert res.status_code == 200
        assert res.data["objection_status"] == ObjectionStatus.PENDING.label

        api_client.force_authenticate(user=principal)
        res = api_client.get(reverse("evaluation-objections"), {"state": "pending"})
        assert [row["evaluation_id"] for row in res.data] == [str(completed.evaluation_id)]
        res = api_client.post(detail("resolve-objection", completed), {"decision": "ACCEPTED"}, format="json")
        assert res.status_code == 200
        assert res.data["objection_status"] == ObjectionStatus.ACCEPTED.label
        assert api_client.get(reverse("evaluation-objections"), {"state": "pending"}).data == []
        assert len(api_client.get(reverse("evaluation-objections"), {"state": "archive"}).data) == 1
        assert api_client.get(reverse("evaluation-objections"), {"state": "x"}).status_code == 400

    def test_teacher_cannot_resolve_and_staff_cannot_object(self, api_client, completed, teacher_user, principal):
        api_client.force_authenticate(user=principal)
        res = api_client.post(detail("objection", completed), {"objection_text": "نص"}, format="json")
        assert res.status_code == 403

        api_client.force_authenticate(user=teacher_user)
        api_client.post(detail("objection", completed), {"objection_text": "نص"}, format="json")
        res = api_client.post(detail("resolve-objection", completed), {"decision": "REJECTED"}, format="json")
        assert res.status_code == 403

    def test_evidence_requires_every_field(self, api_client, completed, teacher_user, indicator):
        api_client.force_authenticate(user=teacher_user)
        res = api_client.post(detail("evidence", completed),
                              {"indicator_id": str(indicator.pk), "url": "https://drive.example.com/f"},
                              format="json")
        assert res.status_code == 400
        res = api_client.post(detail("evidence", completed),
                              {"indicator_id": str(indicator.pk), "url": "https://drive.example.com/f",
                               "description": "شهادة"}, format="json")
        assert res.status_code == 201
        assert res.data["teacher_evidence_links"][0]["description"] == "شهادة"


@pytest.mark.django_db
class TestReadOnlyExtras:
    def test_report(self, api_client, principal, create_teacher, indicator):
        ev = flow.save_evaluation(create_teacher(), "P1")
        flow.apply_sub_score(ev, indicator.pk, 0, 70)
        api_client.force_authenticate(user=principal)
        res = api_client.get(detail("report", ev))
        assert res.status_code == 200
        assert res.data["school"]["name"] == "Test School"
        assert res.data["rows"][0]["score"] == 70.0
        assert res.data["mastery_level"] == "متمكن"

    def test_summary(self, api_client, principal, create_teacher):
        flow.save_evaluation(create_teacher(), "P1", scores={"x": {"score": 80}})
        flow.save_evaluation(create_teacher(), "P1", scores={"x": {"score": 60}})
        flow.save_evaluation(create_teacher(), "P1")
        api_client.force_authenticate(user=principal)
        res = api_client.get(reverse("evaluation-summary"))
        assert res.data == {"count": 3, "completed": 0, "draft": 3, "average": 70.0}
        res = api_client.get(reverse("evaluation-summary"), {"status_label": "مقيم"})
        assert res.data["count"] == 0
        res = api_client.get(reverse("evaluation-summary"), {"status_label": "bogus"})
        assert res.status_code == 400
