from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import Role
from teacher_eval.permissions import IsSchoolStaff, school_ids_for
from teacher_eval.services.analytics import school_analytics, dashboard_counters


class AnalyticsView(APIView):
    """
    GET /api/analytics/?school_id=<uuid>&period_name=<name>

    A principal or evaluator only ever sees their own schools, whatever
    school_id says.
    """
    permission_classes = [IsSchoolStaff]

    def get(self, request):
        school_id = request.query_params.get("school_id") or None
        period_name = request.query_params.get("period_name") or None
        allowed = school_ids_for(request.user)

        if allowed is None:
            school_ids = [school_id] if school_id else None
        elif school_id:
            if school_id not in {str(s) for s in allowed}:
                self.permission_denied(request, message="You can only view analytics of your schools.")
            school_ids = [school_id]
        else:
            school_ids = allowed
        return Response(school_analytics(school_ids, period_name), status=status.HTTP_200_OK)


class DashboardView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        data = dashboard_counters(request.user)
        data["role"] = dict(Role.choices).get(request.user.role)
        return Response(data, status=status.HTTP_200_OK)
