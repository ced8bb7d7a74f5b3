from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers


class PasswordChangeSerializer(serializers.Serializer):
    """Used by the forced first-login change as well as the settings screen."""
    old_password = serializers.CharField()
    new_password = serializers.CharField()
    new_password_confirm = serializers.CharField()

    def validate(self, attrs):
        if attrs["new_password"] != attrs["new_password_confirm"]:
            raise serializers.ValidationError({"new_password_confirm": "كلمة المرور غير متطابقة"})
        if attrs["new_password"] == attrs["old_password"]:
            raise serializers.ValidationError({"new_password": "كلمة المرور الجديدة مطابقة للحالية"})
        user = self.context["request"].user
        try:
            validate_password(attrs["new_password"], user)
        except DjangoValidationError as e:
            raise serializers.ValidationError({"new_password": list(e.messages)})
        return attrs
