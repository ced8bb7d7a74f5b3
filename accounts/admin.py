from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from teacher_eval.models import SchoolMembership
from .models import User


class UserMembershipInline(admin.TabularInline):
    model = SchoolMembership
    fk_name = "user"
    extra = 0
    autocomplete_fields = ("school",)


# ───────────────────────────────
#  User
# ───────────────────────────────
@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "name", "email", "national_id", "role", "is_default_password")
    list_filter = ("role", "is_default_password", "is_active")
    search_fields = ("username", "email", "name", "national_id", "phone")
    ordering = ("name",)
    inlines = [UserMembershipInline]
    fieldsets = (
        (None, {"fields": ("username", "email", "password", "is_default_password")}),
        ("Profile", {"fields": ("name", "national_id", "phone", "role")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser")}),
        ("Dates", {"fields": ("last_login", "password_last_changed")}),
    )
