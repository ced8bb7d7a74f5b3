# teacher_eval/serializers/auth_serializers.py
from rest_framework import serializers
from django.contrib.auth import authenticate, get_user_model
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from accounts.models import Role
from teacher_eval.models import SchoolMembership

User = get_user_model()


def _role_label(user):
    role = getattr(user, "role", None)
    return dict(Role.choices).get(role) if role else None


class EmailLoginSerializer(TokenObtainPairSerializer):
    """
    Supports:
    1) email + password
    2) username + password
    3) national_id + password
    4) email + username + password (both must match)
    """
    username = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    national_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    password = serializers.CharField(write_only=True)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # SimpleJWT adds a required self.username_field; email / national id logins don't send it
        if self.username_field in self.fields:
            self.fields[self.username_field].required = False
            self.fields[self.username_field].allow_blank = True

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        role = _role_label(user)
        if role:
            token["role"] = role
        token["name"] = getattr(user, "name", None) or user.email or user.username
        token["is_default_password"] = getattr(user, "is_default_password", False)
        return token

    def validate(self, attrs):
        username = attrs.get("username") or None
        email = attrs.get("email") or None
        national_id = attrs.get("national_id") or None
        password = attrs.get("password")

        if not (username or email or national_id):
            raise serializers.ValidationError("Provide username, email or national id.")

        user = authenticate(
            request=self.context.get("request"),
            username=username,
            email=email,
            national_id=national_id,
            password=password,
        )
        if not user:
            raise serializers.ValidationError("Invalid credentials.")

        if username and email and (user.username != username or user.email.lower() != email.lower()):
            raise serializers.ValidationError("Email and username do not match.")

        refresh = self.get_token(user)
        schools = [
            {"school_id": str(m.school_id), "school_name": m.school.name, "role": _role_label(m)}
            for m in SchoolMembership.objects.filter(user=user).select_related("school")
        ]
        data = {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
            "role": _role_label(user),
            "name": getattr(user, "name", None) or user.email or user.username,
            "is_default_password": getattr(user, "is_default_password", False),
            "schools": schools,
        }
        self.user = user
        return data
