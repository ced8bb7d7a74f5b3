from django.contrib import admin
from . import models as m
from .services.scoring import calculate_total, get_mastery_level


# ───────────────────────────────
#  Basic inline helpers
# ───────────────────────────────
class EvaluationCriterionInline(admin.TabularInline):
    model = m.EvaluationCriterion
    extra = 0


class VerificationIndicatorInline(admin.TabularInline):
    model = m.VerificationIndicator
    extra = 0


class MembershipInline(admin.TabularInline):
    model = m.SchoolMembership
    extra = 0
    autocomplete_fields = ["user"]


# ───────────────────────────────
#  School
# ───────────────────────────────
@admin.register(m.School)
class SchoolAdmin(admin.ModelAdmin):
    list_display = ("name", "stage", "type", "ministry_id", "manager_name", "created_at")
    search_fields = ("name", "ministry_id", "education_office")
    list_filter = ("stage", "type")
    inlines = [MembershipInline]


@admin.register(m.Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ("name", "national_id", "specialty", "category", "school")
    search_fields = ("name", "national_id")
    list_filter = ("category", "school")
    autocomplete_fields = ["school", "user"]


@admin.register(m.Specialty)
class SpecialtyAdmin(admin.ModelAdmin):
    search_fields = ("name",)


# ───────────────────────────────
#  Indicator
# ───────────────────────────────
@admin.register(m.Indicator)
class IndicatorAdmin(admin.ModelAdmin):
    list_display = ("text", "weight", "sort_order")
    ordering = ("sort_order",)
    search_fields = ("text",)
    inlines = [EvaluationCriterionInline, VerificationIndicatorInline]


def recalc_total_score(modeladmin, request, queryset):
    for ev in queryset:
        ev.total_score = round(calculate_total(ev.scores), 2)
        ev.save(update_fields=["total_score"])
    modeladmin.message_user(request, f"Recalculated for {queryset.count()} evaluations.")
recalc_total_score.short_description = "Recalculate total_score from the scores document"


# ───────────────────────────────
#  Evaluation
# ───────────────────────────────
@admin.register(m.Evaluation)
class EvaluationAdmin(admin.ModelAdmin):
    list_display = ("teacher", "period_name", "status", "total_score", "mastery", "objection_status")
    list_filter = ("status", "objection_status", "period_name")
    search_fields = ("teacher__name", "teacher__national_id")
    autocomplete_fields = ["teacher", "school"]
    actions = [recalc_total_score]

    @admin.display(description="Mastery")
    def mastery(self, obj):
        return get_mastery_level(obj.total_score)


@admin.register(m.Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("school", "plan_name", "start_date", "end_date", "status", "price")
    list_filter = ("plan_name", "status")


@admin.register(m.SchoolEvent)
class SchoolEventAdmin(admin.ModelAdmin):
    list_display = ("name", "type", "start_date", "end_date", "status", "school")
    list_filter = ("type", "status")
