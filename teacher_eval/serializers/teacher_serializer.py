from rest_framework import serializers
from rest_framework.validators import UniqueValidator
from django.contrib.auth import get_user_model

from teacher_eval.models import Teacher, School, TeacherCategory
from teacher_eval.services.evaluation_flow import teacher_status
from teacher_eval.utils import LabelChoiceField

User = get_user_model()

NOT_EVALUATED = "NOT_EVALUATED"


class TeacherSerializer(serializers.ModelSerializer):
    school_id = serializers.PrimaryKeyRelatedField(
        source="school", queryset=School.objects.all(), allow_null=True, required=False
    )
    school_name = serializers.CharField(source="school.name", read_only=True, default=None)
    user_id = serializers.PrimaryKeyRelatedField(
        source="user", queryset=User.objects.all(), allow_null=True, required=False
    )
    category = LabelChoiceField(choices=TeacherCategory.choices, required=False)
    national_id = serializers.RegexField(
        r"^\d{10}$",
        error_messages={"invalid": "رقم الهوية غير صحيح"},
        validators=[UniqueValidator(queryset=Teacher.objects.all(), message="رقم الهوية مسجل مسبقاً")],
    )
    status = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Teacher
        fields = [
            "teacher_id", "national_id", "name", "specialty", "category", "mobile",
            "school_id", "school_name", "user_id", "status", "created_at", "updated_at",
        ]
        read_only_fields = ("teacher_id", "created_at", "updated_at")

    def get_status(self, obj) -> str:
        """Latest evaluation status, or NOT_EVALUATED."""
        return teacher_status(obj) or NOT_EVALUATED
