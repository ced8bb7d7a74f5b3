import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.urls import reverse

from teacher_eval.models import (
    PlanName, School, SchoolMembership, Subscription, Teacher, TeacherCategory
)

User = get_user_model()


@pytest.fixture
def payload():
    return {
        "school_name": "مدرسة النور",
        "ministry_id": "778899",
        "stage": "المتوسطة",
        "school_type": "بنات",
        "full_name": "نورة محمد",
        "national_id": "1098765432",
        "email": "principal@noor.sa",
        "phone": "0550000000",
        "password": "Secret#2025",
        "confirm_password": "Secret#2025",
    }


@pytest.mark.django_db
class TestRegisterSchool:
    def test_creates_school_principal_teacher_and_trial(self, api_client, payload):
        res = api_client.post(reverse("register-school"), payload, format="json")
        assert res.status_code == 201, res.data

        school = School.objects.get(pk=res.data["school_id"])
        assert school.name == "مدرسة النور"
        assert school.manager_name == "نورة محمد"

        user = User.objects.get(pk=res.data["user_id"])
        assert user.role == "PRINCIPAL"
        assert user.check_password("Secret#2025")
        assert SchoolMembership.objects.filter(user=user, school=school, role="PRINCIPAL").exists()

        teacher = Teacher.objects.get(pk=res.data["teacher_id"])
        assert teacher.category == TeacherCategory.MANAGER
        assert teacher.user == user

        sub = Subscription.objects.get(pk=res.data["subscription_id"])
        assert sub.plan_name == PlanName.BASIC
        assert sub.price == 0
        assert (sub.end_date - sub.start_date).days == settings.TRIAL_SUBSCRIPTION_DAYS

    def test_password_mismatch(self, api_client, payload):
        payload["confirm_password"] = "other-pass"
        res = api_client.post(reverse("register-school"), payload, format="json")
        assert res.status_code == 400
        assert "confirm_password" in res.data
        assert not School.objects.exists()

    def test_duplicate_email_or_national_id(self, api_client, payload, create_user, create_teacher):
        create_user(email="principal@noor.sa")
        res = api_client.post(reverse("register-school"), payload, format="json")
        assert res.status_code == 400
        assert res.data["error"] == "البريد الإلكتروني مستخدم بالفعل"

        payload["email"] = "fresh@noor.sa"
        create_teacher(national_id="1098765432")
        res = api_client.post(reverse("register-school"), payload, format="json")
        assert res.status_code == 400
        assert res.data["error"] == "رقم الهوية الوطنية مسجل بالفعل"
        assert not School.objects.filter(name="مدرسة النور").exists()


@pytest.mark.django_db
class TestLogin:
    def test_login_with_email_username_or_national_id(self, api_client, create_user, school, grant):
        user = create_user(username="amal", email="amal@school.sa", national_id="1011111111",
                           name="أمل", role="PRINCIPAL")
        grant(user, school)
        for creds in ({"email": "amal@school.sa"}, {"username": "amal"}, {"national_id": "1011111111"}):
            res = api_client.post(reverse("jwt-login"), {**creds, "password": "pass12345"}, format="json")
            assert res.status_code == 200, res.data
            assert res.data["access"]
            assert res.data["role"] == "مدير المدرسة"
            assert res.data["schools"] == [
                {"school_id": str(school.pk), "school_name": "Test School", "role": "مدير المدرسة"}
            ]

    def test_bad_password(self, api_client, create_user):
        create_user(email="amal@school.sa")
        res = api_client.post(reverse("jwt-login"), {"email": "amal@school.sa", "password": "nope"},
                              format="json")
        assert res.status_code == 400
