import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import viewsets, filters, status, serializers
from rest_framework.decorators import action
from rest_framework.response import Response

from teacher_eval.models import TeacherCategory
from teacher_eval.permissions import ReadOnlyOrAdmin
from teacher_eval.serializers.indicator_serializer import IndicatorSerializer
from teacher_eval.services.indicators import (
    indicator_queryset, is_applicable, validate_indicator_weights, weight_warnings, weights_total
)
from teacher_eval.utils import LabelChoiceField

logger = logging.getLogger(__name__)


class IndicatorViewSet(viewsets.ModelViewSet):
    """
    • Everyone authenticated → read (optionally ?category=... for one teacher category).
    • ADMIN                  → create / update / delete.
    Weight sums are checked after each write and reported, never enforced.
    """
    serializer_class = IndicatorSerializer
    permission_classes = [ReadOnlyOrAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["text", "description"]
    ordering_fields = ["sort_order", "created_at", "weight"]
    lookup_field = "indicator_id"

    def get_queryset(self):
        return indicator_queryset()

    def list(self, request, *args, **kwargs):
        category = request.query_params.get("category")
        if not category:
            return super().list(request, *args, **kwargs)
        try:
            category = LabelChoiceField(choices=TeacherCategory.choices).to_internal_value(category)
        except serializers.ValidationError:
            return Response({
                "error": "Invalid category.",
                "allowed_values": TeacherCategory.values,
                "allowed_labels": TeacherCategory.labels,
            }, status=status.HTTP_400_BAD_REQUEST)
        indicators = [ind for ind in self.filter_queryset(self.get_queryset()) if is_applicable(ind, category)]
        return Response(self.get_serializer(indicators, many=True).data)

    def _with_constraints(self, data):
        warnings = weight_warnings()
        for w in warnings:
            logger.warning("Indicator weights not balanced: %s", w)
        data["constraints_met"] = not warnings
        if warnings:
            data["warnings"] = warnings
        return data

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        data = self._with_constraints(dict(serializer.data))
        headers = self.get_success_headers(data)
        return Response(data, status=status.HTTP_201_CREATED, headers=headers)

    def update(self, request, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        return Response(self._with_constraints(dict(serializer.data)))

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        data = self._with_constraints({"message": "Indicator deleted successfully."})
        return Response(data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="validate-constraints")
    def validate_constraints(self, request):
        """
        GET /api/indicators/validate-constraints/?category=TEACHER

        Returns: {"valid": true/false, "message": "...", "total": "100.00"}
        """
        category = request.query_params.get("category") or None
        if category and category not in TeacherCategory.values:
            return Response({"valid": False, "message": "Invalid category."},
                            status=status.HTTP_400_BAD_REQUEST)
        total = weights_total(category)
        try:
            validate_indicator_weights(category)
        except DjangoValidationError as e:
            return Response({"valid": False, "message": " ".join(e.messages), "total": str(total)},
                            status=status.HTTP_200_OK)
        return Response({"valid": True, "message": "Indicator weights add up to 100.", "total": str(total)},
                        status=status.HTTP_200_OK)
