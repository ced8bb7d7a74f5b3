from accounts.serializers.user_serializer import UserCreateSerializer
from django.contrib.auth import get_user_model
from teacher_eval.permissions import IsSystemAdmin, IsSelfOrAdmin
from rest_framework.permissions import IsAuthenticated
from rest_framework import viewsets, filters
from accounts.serializers.password_change_serializer import PasswordChangeSerializer
from rest_framework.response import Response
from rest_framework import status
from django.utils import timezone
from rest_framework.decorators import action
import logging

logger = logging.getLogger(__name__)
User = get_user_model()

class UserViewSet(viewsets.ModelViewSet):
    """
    • ADMIN      → full CRUD on every account (system settings screen).
    • Everyone   → read / update own account only.
    """
    serializer_class = UserCreateSerializer
    queryset = User.objects.all()
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["username", "email", "name", "national_id"]
    ordering_fields = ["created_at", "name"]
    lookup_field = "user_id"

    def get_permissions(self):
        if self.action in ("create", "destroy"):
            return [IsSystemAdmin()]
        if self.action in ("update", "partial_update"):
            if self.request.user.role == "ADMIN":
                return [IsSystemAdmin()]
            return [IsSelfOrAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        user = self.request.user
        qs = User.objects.prefetch_related("memberships__school")
        if user.role == "ADMIN":
            return qs
        return qs.filter(user_id=user.user_id)

    def perform_update(self, serializer):
        # only admins may change roles
        if self.request.user.role != "ADMIN" and "role" in serializer.validated_data:
            serializer.validated_data.pop("role")
        serializer.save()

    @action(detail=False, methods=["get"], url_path="me")
    def me(self, request):
        serializer = self.get_serializer(request.user)
        return Response(serializer.data)

    #--------------------------------------------
    @action(
            detail=False,
            methods=["post"],
            url_path="change-password",
            permission_classes=[IsAuthenticated],
    )
    def change_password(self, request):
        user = request.user
        serializer = PasswordChangeSerializer(
            data=request.data,
            context={'request': request}
        )

        if serializer.is_valid():
            if not user.check_password(serializer.validated_data['old_password']):
                return Response(
                    {"old_password": "Wrong password"},
                    status=status.HTTP_400_BAD_REQUEST
                )

            user.set_password(serializer.validated_data['new_password'])
            user.is_default_password = False
            user.password_last_changed = timezone.now()
            user.save()
            logger.info("Password changed for user %s", user.pk)

            return Response({
                "status": "success",
                "message": "Password changed successfully",
                "is_default_password": False
            }, status=status.HTTP_200_OK)

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
