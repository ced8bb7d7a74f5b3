import pytest
from uuid import uuid4
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from teacher_eval.models import (
    School, SchoolMembership, Teacher, TeacherCategory, Indicator
)
from teacher_eval.services.indicators import replace_indicator_texts


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def create_user(db):
    User = get_user_model()
    def _create_user(**kw):
        data = {
            "username": f"u_{uuid4().hex[:8]}",
            "email": f"{uuid4().hex[:8]}@test.local",
            "password": "pass12345",
            "name": "Test User",
            "role": "TEACHER",
        }
        data.update(kw)
        return User.objects.create_user(**data)
    return _create_user


@pytest.fixture
def create_school(db):
    def _create_school(**kw):
        defaults = dict(
            name=f"مدرسة {uuid4().hex[:6]}",
            stage="الابتدائية",
            type="بنين",
            ministry_id="123456",
            manager_name="مدير المدرسة",
            evaluator_name="المقيم",
        )
        defaults.update(kw)
        return School.objects.create(**defaults)
    return _create_school


@pytest.fixture
def school(create_school):
    return create_school(name="Test School")


@pytest.fixture
def grant():
    def _grant(user, school, role=None):
        return SchoolMembership.objects.create(user=user, school=school, role=role or user.role)
    return _grant


@pytest.fixture
def create_teacher(db, school):
    counter = {"n": 0}
    def _create_teacher(**kw):
        counter["n"] += 1
        defaults = dict(
            national_id=f"10{uuid4().int % 10**8:08d}",
            name=f"Teacher {counter['n']}",
            specialty="رياضيات",
            category=TeacherCategory.TEACHER,
            school=school,
        )
        defaults.update(kw)
        return Teacher.objects.create(**defaults)
    return _create_teacher


@pytest.fixture
def create_indicator(db):
    counter = {"n": 0}
    def _create_indicator(criteria=("c1", "c2", "c3", "c4"), verification=(), **kw):
        counter["n"] += 1
        defaults = dict(text=f"Indicator {counter['n']}", weight=10, sort_order=counter["n"])
        defaults.update(kw)
        indicator = Indicator.objects.create(**defaults)
        replace_indicator_texts(indicator, list(criteria), list(verification))
        return indicator
    return _create_indicator


@pytest.fixture
def principal(create_user, grant, school):
    user = create_user(role="PRINCIPAL")
    grant(user, school)
    return user


@pytest.fixture
def admin_user(create_user):
    return create_user(role="ADMIN")
