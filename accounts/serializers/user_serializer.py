import re

from rest_framework import serializers
from django.contrib.auth import get_user_model

from accounts.models import Role
from teacher_eval.models import School, SchoolMembership
from teacher_eval.utils import LabelChoiceField

User = get_user_model()


def username_from_email(email: str) -> str:
    base = (email or "").split("@")[0][:150] or "user"
    base = re.sub(r"[^a-zA-Z0-9_.-]+", "", base)
    return base or "user"


def unique_username(suggested: str) -> str:
    username = suggested
    n = 1
    while User.objects.filter(username=username).exists():
        n += 1
        username = f"{suggested}-{n}"
    return username


class MembershipSerializer(serializers.ModelSerializer):
    school_id = serializers.UUIDField(source="school.school_id", read_only=True)
    school_name = serializers.CharField(source="school.name", read_only=True)
    role = LabelChoiceField(choices=Role.choices, read_only=True)

    class Meta:
        model = SchoolMembership
        fields = ["school_id", "school_name", "role"]


class UserCreateSerializer(serializers.ModelSerializer):
    """Hashes password, derives a username from the email and grants school access."""
    password = serializers.CharField(write_only=True, min_length=8)
    username = serializers.CharField(required=False, allow_blank=True)
    role = LabelChoiceField(choices=Role.choices)
    school_id = serializers.PrimaryKeyRelatedField(
        queryset=School.objects.all(), write_only=True, required=False, allow_null=True
    )
    memberships = MembershipSerializer(many=True, read_only=True)

    class Meta:
        model = User
        fields = ["user_id", "username", "name", "email", "national_id", "phone",
                  "password", "role", "school_id", "memberships", "created_at"]
        read_only_fields = ("user_id", "created_at")

    def validate(self, attrs):
        role = attrs.get("role", getattr(self.instance, "role", None))
        school = attrs.get("school_id")
        # every non-admin account must be attached to a school on creation
        if self.instance is None and role != Role.ADMIN and school is None:
            raise serializers.ValidationError({"school_id": "School is required for this role."})
        return attrs

    def create(self, validated_data):  # called by viewset
        password = validated_data.pop("password")
        school = validated_data.pop("school_id", None)
        if not validated_data.get("username"):
            validated_data["username"] = unique_username(username_from_email(validated_data["email"]))
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        if school is not None:
            SchoolMembership.objects.get_or_create(user=user, school=school, role=user.role)
        return user

    #---------------UPDATE / PATCH----------------
    def update(self, instance, validated_data):
        pwd = validated_data.pop("password", None)
        school = validated_data.pop("school_id", None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if pwd:
            instance.set_password(pwd)
        instance.save()
        if school is not None:
            SchoolMembership.objects.get_or_create(user=instance, school=school, role=instance.role)
        return instance
