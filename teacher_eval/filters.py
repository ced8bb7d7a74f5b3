import django_filters as filters
from django.db.models import Exists, OuterRef, Subquery

from teacher_eval.models import Evaluation, Teacher, SchoolEvent, Subscription, TeacherCategory


class TeacherFilter(filters.FilterSet):
    school_id = filters.UUIDFilter(field_name="school__school_id", lookup_expr="exact")
    category  = filters.ChoiceFilter(choices=TeacherCategory.choices)
    specialty = filters.CharFilter(field_name="specialty", lookup_expr="exact")
    status    = filters.CharFilter(method="filter_status")   # NOT_EVALUATED / DRAFT / COMPLETED

    class Meta:
        model = Teacher
        fields = ["school_id", "category", "specialty", "status"]

    def filter_status(self, queryset, name, value):
        latest = (Evaluation.objects
                  .filter(teacher=OuterRef("pk"))
                  .order_by("-eval_date", "-created_at")
                  .values("status")[:1])
        if value == "NOT_EVALUATED":
            return queryset.filter(~Exists(Evaluation.objects.filter(teacher=OuterRef("pk"))))
        return queryset.annotate(_latest_status=Subquery(latest)).filter(_latest_status=value)


class EvaluationFilter(filters.FilterSet):
    teacher_id       = filters.UUIDFilter(field_name="teacher__teacher_id", lookup_expr="exact")
    school_id        = filters.UUIDFilter(field_name="school__school_id", lookup_expr="exact")
    period_name      = filters.CharFilter(field_name="period_name", lookup_expr="exact")
    status           = filters.CharFilter(field_name="status", lookup_expr="exact")  # use keys e.g. DRAFT
    objection_status = filters.CharFilter(field_name="objection_status", lookup_expr="exact")

    class Meta:
        model = Evaluation
        fields = ["teacher_id", "school_id", "period_name", "status", "objection_status"]


class SubscriptionFilter(filters.FilterSet):
    school_id = filters.UUIDFilter(field_name="school__school_id", lookup_expr="exact")
    status    = filters.CharFilter(field_name="status", lookup_expr="exact")

    class Meta:
        model = Subscription
        fields = ["school_id", "status", "plan_name"]


class SchoolEventFilter(filters.FilterSet):
    school_id = filters.UUIDFilter(field_name="school__school_id", lookup_expr="exact")
    type      = filters.CharFilter(field_name="type", lookup_expr="exact")
    status    = filters.CharFilter(field_name="status", lookup_expr="exact")

    class Meta:
        model = SchoolEvent
        fields = ["school_id", "type", "status"]
