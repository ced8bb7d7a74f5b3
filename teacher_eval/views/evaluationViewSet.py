import logging
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q, Avg
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status, filters, serializers
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.models import Role
from teacher_eval.filters import EvaluationFilter
from teacher_eval.models import Evaluation, EvalStatus, ObjectionStatus
from teacher_eval.permissions import (
    CanTouchEvaluation, IsSchoolStaff, can_manage_school, owns_teacher, school_ids_for
)
from teacher_eval.serializers.evaluation_serializer import (
    EvaluationSerializer, ScoreEntrySerializer, FieldEntrySerializer,
    ObjectionSerializer, ObjectionDecisionSerializer, EvidenceLinkSerializer,
)
from teacher_eval.services import evaluation_flow, scoring
from teacher_eval.services.report import build_report
from teacher_eval.utils import LabelChoiceField, error_text

logger = logging.getLogger(__name__)

# actions a teacher may call on their own evaluation
TEACHER_ACTIONS = ("objection", "evidence")


class EvaluationViewSet(viewsets.ModelViewSet):
    """
    Permissions
    -----------
    • ADMIN                → everything.
    • PRINCIPAL / EVALUATOR → evaluations of teachers in schools they hold a grant for.
    • TEACHER              → read own evaluations, raise an objection, attach evidence.
    """
    serializer_class = EvaluationSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = EvaluationFilter
    search_fields = ["teacher__name", "teacher__national_id", "period_name"]
    ordering_fields = ["eval_date", "created_at", "total_score"]
    ordering = ["-eval_date", "-created_at"]
    lookup_field = "evaluation_id"

    # ----dynamic permissions----
    def get_permissions(self):
        action = self.action
        if action in ("list", "retrieve", "report", "summary", "objections"):
            return [IsAuthenticated()]
        if action in TEACHER_ACTIONS:
            return [IsAuthenticated()]
        return [IsSchoolStaff(), CanTouchEvaluation()]

    # ---- queryset filtered by role ---------------------------
    def get_queryset(self):
        qs = Evaluation.objects.select_related("teacher", "school")
        user = self.request.user
        school_ids = school_ids_for(user)
        if school_ids is None:
            return qs
        if user.role in (Role.PRINCIPAL, Role.EVALUATOR):
            return qs.filter(Q(school_id__in=school_ids) | Q(teacher__school_id__in=school_ids))
        return qs.filter(teacher__user=user)

    # ---- create = upsert ---------------------------------------
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        teacher = data["teacher"]
        if not can_manage_school(request.user, teacher.school_id):
            self.permission_denied(request, message="You can only evaluate teachers of your schools.")
        try:
            evaluation = evaluation_flow.save_evaluation(
                teacher,
                data["period_name"],
                general_notes=data.get("general_notes"),
                eval_date=data.get("eval_date"),
                evaluator_name=data.get("evaluator_name"),
                manager_name=data.get("manager_name"),
            )
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(evaluation).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        if data.get("teacher", instance.teacher) != instance.teacher or \
                data.get("period_name", instance.period_name) != instance.period_name:
            return Response({"error": "Teacher and period cannot be changed."},
                            status=status.HTTP_400_BAD_REQUEST)
        try:
            evaluation = evaluation_flow.save_evaluation(
                instance.teacher,
                instance.period_name,
                general_notes=data.get("general_notes"),
                eval_date=data.get("eval_date"),
                evaluator_name=data.get("evaluator_name"),
                manager_name=data.get("manager_name"),
            )
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(evaluation).data)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        return Response({
            "message": "Evaluation deleted successfully."
        }, status=status.HTTP_204_NO_CONTENT)

    # ---- scoring ------------------------------------------------
    @action(detail=True, methods=["post"], url_path="score")
    def score(self, request, evaluation_id=None):
        """
        POST /api/evaluations/{id}/score/
        Body: {"indicator_id": "...", "criterion_index": 0, "value": "9"}

        An out-of-range value is not an error: the previous score comes back
        with "accepted": false.
        """
        evaluation = self.get_object()
        ser = ScoreEntrySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            entry, accepted = evaluation_flow.apply_sub_score(
                evaluation,
                ser.validated_data["indicator_id"],
                ser.validated_data["criterion_index"],
                ser.validated_data["value"],
            )
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            "accepted": accepted,
            "score": entry,
            "total_score": float(evaluation.total_score),
            "mastery_level": scoring.get_mastery_level(evaluation.total_score),
        }, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="field")
    def field(self, request, evaluation_id=None):
        evaluation = self.get_object()
        ser = FieldEntrySerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            entry, accepted = evaluation_flow.apply_field(
                evaluation,
                ser.validated_data["indicator_id"],
                ser.validated_data["field"],
                ser.validated_data["value"],
            )
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"accepted": accepted, "score": entry}, status=status.HTTP_200_OK)

    # ---- lifecycle ----------------------------------------------
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, evaluation_id=None):
        evaluation = self.get_object()
        try:
            evaluation_flow.complete_evaluation(evaluation)
        except DjangoValidationError as e:
            logger.warning("Evaluation %s not completed: %s", evaluation.pk, e.messages)
            return Response({"valid": False, "message": e.messages}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(evaluation).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="revert")
    def revert(self, request, evaluation_id=None):
        evaluation = self.get_object()
        try:
            evaluation_flow.revert_to_draft(evaluation)
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(evaluation).data, status=status.HTTP_200_OK)

    # ---- objections & evidence ----------------------------------
    def _own_evaluation(self, request):
        evaluation = self.get_object()
        if not owns_teacher(request.user, evaluation.teacher):
            self.permission_denied(request, message="Only the evaluated teacher can do this.")
        return evaluation

    @action(detail=True, methods=["post"], url_path="objection")
    def objection(self, request, evaluation_id=None):
        evaluation = self._own_evaluation(request)
        ser = ObjectionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            evaluation_flow.submit_objection(evaluation, ser.validated_data["objection_text"])
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(evaluation).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="resolve-objection")
    def resolve_objection(self, request, evaluation_id=None):
        evaluation = self.get_object()
        ser = ObjectionDecisionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            evaluation_flow.resolve_objection(evaluation, ser.validated_data["decision"])
        except DjangoValidationError as e:
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(evaluation).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="evidence")
    def evidence(self, request, evaluation_id=None):
        evaluation = self._own_evaluation(request)
        ser = EvidenceLinkSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"error": "الرجاء تعبئة جميع الحقول (المؤشر، الرابط، الوصف)", "details": ser.errors},
                            status=status.HTTP_400_BAD_REQUEST)
        evaluation_flow.add_evidence_link(evaluation, **ser.validated_data)
        return Response(self.get_serializer(evaluation).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"], url_path="objections")
    def objections(self, request):
        """
        GET /api/evaluations/objections/?state=pending|archive
        """
        state = request.query_params.get("state", "pending")
        qs = self.get_queryset()
        if state == "pending":
            qs = qs.filter(objection_status=ObjectionStatus.PENDING)
        elif state == "archive":
            qs = qs.filter(objection_status__in=(ObjectionStatus.ACCEPTED, ObjectionStatus.REJECTED))
        else:
            return Response({"error": "state must be 'pending' or 'archive'."},
                            status=status.HTTP_400_BAD_REQUEST)
        qs = qs.order_by("-updated_at")
        return Response(self.get_serializer(qs, many=True).data)

    # ---- read-only extras ---------------------------------------
    @action(detail=True, methods=["get"], url_path="report")
    def report(self, request, evaluation_id=None):
        return Response(build_report(self.get_object()), status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        qs = self.filter_queryset(self.get_queryset())
        status_filter = request.query_params.get("status_label")
        if status_filter:
            try:
                qs = qs.filter(status=LabelChoiceField(choices=EvalStatus.choices).to_internal_value(status_filter))
            except serializers.ValidationError:
                return Response({
                    "error": "Invalid status.",
                    "allowed_values": EvalStatus.values,
                    "allowed_labels": EvalStatus.labels,
                }, status=status.HTTP_400_BAD_REQUEST)

        agg = qs.filter(total_score__gt=0).aggregate(average=Avg("total_score"))
        average = agg.get("average") or Decimal("0")
        return Response({
            "count": qs.count(),
            "completed": qs.filter(status=EvalStatus.COMPLETED).count(),
            "draft": qs.filter(status=EvalStatus.DRAFT).count(),
            "average": round(float(average), 2),
        }, status=status.HTTP_200_OK)
