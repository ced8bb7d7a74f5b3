from decimal import Decimal

from rest_framework import serializers

from teacher_eval.models import Indicator, TeacherCategory
from teacher_eval.services.indicators import clean_category_weights, replace_indicator_texts

RUBRIC_LEVELS = ("1", "2", "3", "4", "5")


class IndicatorSerializer(serializers.ModelSerializer):
    """
    Criteria and verification indicators travel as ordered lists of strings and
    are replaced wholesale on every save.
    """
    weight = serializers.DecimalField(max_digits=6, decimal_places=2, min_value=Decimal("0.01"))
    criteria = serializers.ListField(
        child=serializers.CharField(allow_blank=True), source="criteria_texts", required=False
    )
    verification_indicators = serializers.ListField(
        child=serializers.CharField(allow_blank=True), source="verification_texts", required=False
    )
    applicable_categories = serializers.ListField(
        child=serializers.ChoiceField(choices=TeacherCategory.choices), required=False
    )
    category_weights = serializers.DictField(
        child=serializers.FloatField(min_value=0.01), required=False
    )
    rubric = serializers.DictField(required=False)

    class Meta:
        model = Indicator
        fields = [
            "indicator_id", "text", "description", "weight", "sort_order", "rubric",
            "criteria", "verification_indicators",
            "applicable_categories", "category_weights",
            "created_at", "updated_at",
        ]
        read_only_fields = ("indicator_id", "created_at", "updated_at")

    def validate_rubric(self, value):
        cleaned = {}
        for key, entry in value.items():
            if str(key) not in RUBRIC_LEVELS:
                raise serializers.ValidationError(f"Unknown rubric level: {key}")
            if isinstance(entry, str):
                entry = {"description": entry, "evidence": ""}
            if not isinstance(entry, dict):
                raise serializers.ValidationError(f"Rubric level {key} must be an object.")
            cleaned[str(key)] = {
                "description": str(entry.get("description", "")),
                "evidence": str(entry.get("evidence", "")),
            }
        return cleaned

    def validate(self, attrs):
        applicable = attrs.get("applicable_categories",
                               getattr(self.instance, "applicable_categories", []))
        weights = attrs.get("category_weights", getattr(self.instance, "category_weights", {}))
        base = attrs.get("weight", getattr(self.instance, "weight", None))
        attrs["category_weights"] = clean_category_weights(applicable, weights, base)
        return attrs

    def create(self, validated_data):
        criteria = validated_data.pop("criteria_texts", None)
        verification = validated_data.pop("verification_texts", None)
        indicator = super().create(validated_data)
        replace_indicator_texts(indicator, criteria or [], verification or [])
        return indicator

    def update(self, instance, validated_data):
        criteria = validated_data.pop("criteria_texts", None)
        verification = validated_data.pop("verification_texts", None)
        indicator = super().update(instance, validated_data)
        replace_indicator_texts(indicator, criteria, verification)
        # the viewset prefetched the old criteria
        indicator._prefetched_objects_cache = {}
        return indicator
