from rest_framework import serializers

from teacher_eval.models import (
    Evaluation, Teacher, EvalStatus, ObjectionStatus
)
from teacher_eval.services import scoring
from teacher_eval.utils import LabelChoiceField


class EvaluationSerializer(serializers.ModelSerializer):
    """
    • `scores` is the raw document (indicator id -> score record), read-only:
      it changes through the score / field actions only.
    • Create / update go through the upsert service in the viewset.
    """
    teacher_id = serializers.PrimaryKeyRelatedField(source="teacher", queryset=Teacher.objects.all())
    teacher_name = serializers.CharField(source="teacher.name", read_only=True)
    school_id = serializers.PrimaryKeyRelatedField(source="school", read_only=True)
    school_name = serializers.CharField(source="school.name", read_only=True, default=None)
    status = LabelChoiceField(choices=EvalStatus.choices, read_only=True)
    objection_status = LabelChoiceField(choices=ObjectionStatus.choices, read_only=True)
    total_score = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)
    mastery_level = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Evaluation
        fields = [
            "evaluation_id",
            "teacher_id", "teacher_name",
            "school_id", "school_name",
            "period_name", "eval_date",
            "scores", "total_score", "mastery_level",
            "general_notes", "status",
            "evaluator_name", "manager_name",
            "objection_text", "objection_status",
            "teacher_evidence_links",
            "created_at", "updated_at",
        ]
        read_only_fields = (
            "evaluation_id", "scores", "objection_text", "teacher_evidence_links",
            "created_at", "updated_at",
        )
        # (teacher, period) is an upsert key, not a create-time uniqueness check
        validators = []

    def get_mastery_level(self, obj) -> str:
        return scoring.get_mastery_level(obj.total_score)


class ScoreEntrySerializer(serializers.Serializer):
    indicator_id = serializers.UUIDField()
    criterion_index = serializers.IntegerField()
    # free text on purpose: an unparsable value clears the slot
    value = serializers.CharField(allow_blank=True, allow_null=True, required=False, default=None)


class FieldEntrySerializer(serializers.Serializer):
    indicator_id = serializers.UUIDField()
    field = serializers.ChoiceField(choices=scoring.EDITABLE_FIELDS)
    value = serializers.CharField(allow_blank=True, allow_null=True, required=False, default="")


class ObjectionSerializer(serializers.Serializer):
    objection_text = serializers.CharField(allow_blank=True)


class ObjectionDecisionSerializer(serializers.Serializer):
    decision = LabelChoiceField(choices=[
        (ObjectionStatus.ACCEPTED, ObjectionStatus.ACCEPTED.label),
        (ObjectionStatus.REJECTED, ObjectionStatus.REJECTED.label),
    ])


class EvidenceLinkSerializer(serializers.Serializer):
    indicator_id = serializers.UUIDField()
    url = serializers.URLField()
    description = serializers.CharField()


class EvaluationHistorySerializer(serializers.Serializer):
    evaluation_id = serializers.UUIDField()
    period_name = serializers.CharField()
    eval_date = serializers.DateField()
    total_score = serializers.FloatField()
    mastery_level = serializers.CharField()
    status = LabelChoiceField(choices=EvalStatus.choices)
    objection_status = LabelChoiceField(choices=ObjectionStatus.choices)
