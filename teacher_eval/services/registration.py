from datetime import timedelta
from typing import Any, Dict
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from accounts.models import Role
from accounts.serializers.user_serializer import unique_username, username_from_email
from teacher_eval.models import (
    PlanName, School, SchoolMembership, Subscription, SubscriptionStatus, Teacher, TeacherCategory
)

logger = logging.getLogger(__name__)
User = get_user_model()

PRINCIPAL_SPECIALTY = "إدارة مدرسية"


def register_school(*, school_name: str, ministry_id: str = "", stage: str = "", school_type: str = "",
                    full_name: str, national_id: str, email: str, password: str,
                    phone: str = "") -> Dict[str, Any]:
    """
    Self-service sign-up of a school and its principal.

    Creates the school, the principal's login (PRINCIPAL grant), the
    principal's teacher record and a free Basic trial subscription.
    """
    if User.objects.filter(email__iexact=email).exists():
        raise ValidationError("البريد الإلكتروني مستخدم بالفعل")
    if Teacher.objects.filter(national_id=national_id).exists():
        raise ValidationError("رقم الهوية الوطنية مسجل بالفعل")

    with transaction.atomic():
        school = School.objects.create(
            name=school_name,
            ministry_id=ministry_id,
            stage=stage,
            type=school_type,
            manager_name=full_name,
            manager_national_id=national_id,
        )
        user = User(
            username=unique_username(username_from_email(email)),
            email=email,
            name=full_name,
            national_id=national_id,
            phone=phone,
            role=Role.PRINCIPAL,
        )
        user.set_password(password)
        user.save()
        SchoolMembership.objects.create(user=user, school=school, role=Role.PRINCIPAL)

        teacher = Teacher.objects.create(
            national_id=national_id,
            name=full_name,
            specialty=PRINCIPAL_SPECIALTY,
            category=TeacherCategory.MANAGER,
            mobile=phone,
            school=school,
            user=user,
        )

        today = timezone.localdate()
        subscription = Subscription.objects.create(
            school=school,
            plan_name=PlanName.BASIC,
            start_date=today,
            end_date=today + timedelta(days=settings.TRIAL_SUBSCRIPTION_DAYS),
            status=SubscriptionStatus.ACTIVE,
            price=0,
        )

    logger.info("Registered school %s with principal %s", school.pk, user.pk)
    return {"school": school, "user": user, "teacher": teacher, "subscription": subscription}
