import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import Role
from teacher_eval.filters import TeacherFilter
from teacher_eval.models import School, Teacher
from teacher_eval.permissions import CanTouchSchool, IsSchoolStaff, can_manage_school, school_ids_for
from teacher_eval.serializers.evaluation_serializer import EvaluationHistorySerializer
from teacher_eval.serializers.teacher_serializer import TeacherSerializer
from teacher_eval.services.evaluation_flow import evaluation_history
from teacher_eval.services.teacher_importer import parse_teacher_rows, import_teachers
from teacher_eval.utils import parse_bool_param

logger = logging.getLogger(__name__)


class TeacherViewSet(viewsets.ModelViewSet):
    """
    • ADMIN                 → every teacher.
    • PRINCIPAL / EVALUATOR → teachers of their schools (create / edit / import there).
    • TEACHER               → own record, read-only.
    """
    serializer_class = TeacherSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = TeacherFilter
    search_fields = ["name", "national_id"]
    ordering_fields = ["name", "created_at"]
    ordering = ["name"]
    lookup_field = "teacher_id"

    def get_permissions(self):
        if self.action in ("list", "retrieve", "history"):
            return [IsAuthenticated()]
        return [IsSchoolStaff(), CanTouchSchool()]

    def get_queryset(self):
        qs = Teacher.objects.select_related("school", "user")
        user = self.request.user
        school_ids = school_ids_for(user)
        if school_ids is None:
            return qs
        if user.role in (Role.PRINCIPAL, Role.EVALUATOR):
            return qs.filter(school_id__in=school_ids)
        return qs.filter(user=user)

    def _check_school(self, school):
        if not can_manage_school(self.request.user, getattr(school, "pk", None)):
            self.permission_denied(self.request, message="You can only manage teachers of your schools.")

    def perform_create(self, serializer):
        self._check_school(serializer.validated_data.get("school"))
        serializer.save()

    def perform_update(self, serializer):
        if "school" in serializer.validated_data:
            self._check_school(serializer.validated_data["school"])
        serializer.save()

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        return Response({
            "message": "Teacher deleted successfully."
        }, status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, teacher_id=None):
        teacher = self.get_object()
        return Response(EvaluationHistorySerializer(evaluation_history(teacher), many=True).data)

    #------------------ Importing At Once Section ------------------

    @action(detail=False, methods=["post"], url_path="import")
    def bulk_import(self, request, *args, **kwargs):
        """
        Bulk import teachers from JSON array or uploaded CSV/XLSX file.

        - JSON: POST array of objects
        - File: multipart/form-data with 'file'
        Query params:
          - school_id=<uuid>        : target school (required)
          - dry_run=true            : validate only
          - update_existing=true    : upsert by national id
        """
        school_id = request.query_params.get("school_id")
        school = School.objects.filter(pk=school_id).first() if school_id else None
        if school is None:
            return Response({"detail": "school_id is required."}, status=status.HTTP_400_BAD_REQUEST)
        self._check_school(school)

        try:
            rows = parse_teacher_rows(request)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)

        result = import_teachers(
            rows, school,
            added_by=request.user.name or request.user.username,
            dry_run=parse_bool_param(request.query_params.get("dry_run")),
            update_existing=parse_bool_param(request.query_params.get("update_existing")),
        )
        return Response(result, status=status.HTTP_200_OK)
