from rest_framework import serializers

from teacher_eval.models import (
    School, Subscription, SchoolEvent, Specialty,
    PlanName, SubscriptionStatus, EventType, EventStatus,
)
from teacher_eval.utils import LabelChoiceField


class SchoolSerializer(serializers.ModelSerializer):
    teachers_count = serializers.IntegerField(source="teachers.count", read_only=True)

    class Meta:
        model = School
        fields = [
            "school_id", "name", "stage", "type", "ministry_id", "education_office",
            "academic_year", "manager_name", "manager_national_id", "evaluator_name",
            "teachers_count", "created_at", "updated_at",
        ]
        read_only_fields = ("school_id", "created_at", "updated_at")


class SubscriptionSerializer(serializers.ModelSerializer):
    school_id = serializers.PrimaryKeyRelatedField(source="school", queryset=School.objects.all())
    school_name = serializers.CharField(source="school.name", read_only=True)
    plan_name = LabelChoiceField(choices=PlanName.choices)
    status = LabelChoiceField(choices=SubscriptionStatus.choices, required=False)

    class Meta:
        model = Subscription
        fields = ["subscription_id", "school_id", "school_name", "plan_name",
                  "start_date", "end_date", "status", "price", "created_at"]
        read_only_fields = ("subscription_id", "created_at")

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must not precede start date."})
        return attrs


class SchoolEventSerializer(serializers.ModelSerializer):
    school_id = serializers.PrimaryKeyRelatedField(
        source="school", queryset=School.objects.all(), required=False, allow_null=True
    )
    type = LabelChoiceField(choices=EventType.choices, required=False)
    status = LabelChoiceField(choices=EventStatus.choices, required=False)

    class Meta:
        model = SchoolEvent
        fields = ["event_id", "name", "type", "start_date", "end_date", "status",
                  "description", "school_id", "created_at"]
        read_only_fields = ("event_id", "created_at")

    def validate(self, attrs):
        start = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start and end and end < start:
            raise serializers.ValidationError({"end_date": "End date must not precede start date."})
        return attrs


class SpecialtySerializer(serializers.ModelSerializer):
    class Meta:
        model = Specialty
        fields = ["specialty_id", "name", "created_at"]
        read_only_fields = ("specialty_id", "created_at")


class RegistrationSerializer(serializers.Serializer):
    school_name = serializers.CharField(max_length=180)
    ministry_id = serializers.CharField(max_length=40, required=False, allow_blank=True, default="")
    stage = serializers.CharField(max_length=60, required=False, allow_blank=True, default="")
    school_type = serializers.CharField(max_length=60, required=False, allow_blank=True, default="")
    full_name = serializers.CharField(max_length=120)
    national_id = serializers.RegexField(r"^\d{10}$", error_messages={"invalid": "رقم الهوية غير صحيح"})
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True, default="")
    password = serializers.CharField(write_only=True, min_length=8)
    confirm_password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        if attrs["password"] != attrs.pop("confirm_password"):
            raise serializers.ValidationError({"confirm_password": "كلمات المرور غير متطابقة"})
        return attrs
