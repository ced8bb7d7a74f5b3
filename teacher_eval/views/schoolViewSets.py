import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters, status
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from teacher_eval.filters import SubscriptionFilter, SchoolEventFilter
from teacher_eval.models import School, Subscription, SchoolEvent, Specialty
from teacher_eval.permissions import CanTouchSchool, IsSystemAdmin, ReadOnlyOrAdmin, school_ids_for
from teacher_eval.serializers.school_serializers import (
    SchoolSerializer, SubscriptionSerializer, SchoolEventSerializer, SpecialtySerializer,
    RegistrationSerializer,
)
from teacher_eval.services.registration import register_school
from teacher_eval.utils import error_text

logger = logging.getLogger(__name__)


class SchoolViewSet(viewsets.ModelViewSet):
    """
    • ADMIN                 → full CRUD.
    • PRINCIPAL / EVALUATOR → read / update their own schools.
    • TEACHER               → read the schools they belong to.
    Deleting a school detaches its teachers and evaluations.
    """
    serializer_class = SchoolSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "ministry_id", "education_office"]
    ordering_fields = ["name", "created_at"]
    ordering = ["name"]
    lookup_field = "school_id"

    def get_permissions(self):
        if self.action in ("create", "destroy"):
            return [IsSystemAdmin()]
        return [IsAuthenticated(), CanTouchSchool()]

    def get_queryset(self):
        qs = School.objects.all()
        school_ids = school_ids_for(self.request.user)
        if school_ids is None:
            return qs
        return qs.filter(school_id__in=school_ids)

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        self.perform_destroy(instance)
        logger.info("School %s deleted by %s", instance.pk, request.user.pk)
        return Response({
            "message": "School deleted successfully."
        }, status=status.HTTP_204_NO_CONTENT)


class SubscriptionViewSet(viewsets.ModelViewSet):
    queryset = Subscription.objects.select_related("school").order_by("-start_date")
    serializer_class = SubscriptionSerializer
    permission_classes = [IsSystemAdmin]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = SubscriptionFilter
    ordering_fields = ["start_date", "end_date", "price"]
    lookup_field = "subscription_id"


class SchoolEventViewSet(viewsets.ModelViewSet):
    """Read for everyone; events are managed by the system admin."""
    serializer_class = SchoolEventSerializer
    permission_classes = [ReadOnlyOrAdmin]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = SchoolEventFilter
    search_fields = ["name", "description"]
    ordering_fields = ["start_date", "end_date"]
    ordering = ["-start_date"]
    lookup_field = "event_id"

    def get_queryset(self):
        qs = SchoolEvent.objects.all()
        school_ids = school_ids_for(self.request.user)
        if school_ids is None:
            return qs
        # global events (no school) are visible to everyone
        return qs.filter(school__isnull=True) | qs.filter(school_id__in=school_ids)


class SpecialtyViewSet(viewsets.ModelViewSet):
    queryset = Specialty.objects.all().order_by("name")
    serializer_class = SpecialtySerializer
    permission_classes = [ReadOnlyOrAdmin]
    filter_backends = [filters.SearchFilter]
    search_fields = ["name"]
    lookup_field = "specialty_id"


class RegisterSchoolView(APIView):
    """
    POST /api/auth/register/
    Public sign-up: school + principal account + trial subscription.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        ser = RegistrationSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            created = register_school(**ser.validated_data)
        except DjangoValidationError as e:
            logger.warning("School registration refused: %s", e.messages)
            return Response({"error": error_text(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            "school_id": str(created["school"].pk),
            "user_id": str(created["user"].pk),
            "teacher_id": str(created["teacher"].pk),
            "subscription_id": str(created["subscription"].pk),
            "message": "School registered successfully.",
        }, status=status.HTTP_201_CREATED)
