# teacher_eval/urls/api.py
from django.urls import path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import (
    TokenRefreshView,      # POST /api/auth/refresh/
    TokenBlacklistView,    # POST /api/auth/logout/ (requires blacklist app)
)

from teacher_eval.views.analyticsView import AnalyticsView, DashboardView
from teacher_eval.views.auth import EmailLoginView
from teacher_eval.views.evaluationViewSet import EvaluationViewSet
from teacher_eval.views.indicatorViewSet import IndicatorViewSet
from teacher_eval.views.schoolViewSets import (
    SchoolViewSet, SubscriptionViewSet, SchoolEventViewSet, SpecialtyViewSet, RegisterSchoolView,
)
from teacher_eval.views.teacherViewSet import TeacherViewSet

router = DefaultRouter()

router.register("schools", SchoolViewSet, basename="school")                # /api/schools/
router.register("teachers", TeacherViewSet, basename="teacher")             # /api/teachers/
router.register("indicators", IndicatorViewSet, basename="indicator")       # /api/indicators/
router.register("evaluations", EvaluationViewSet, basename="evaluation")    # /api/evaluations/
router.register("subscriptions", SubscriptionViewSet, basename="subscription")
router.register("events", SchoolEventViewSet, basename="event")
router.register("specialties", SpecialtyViewSet, basename="specialty")

urlpatterns = [
    # JWT
    path("auth/login/",    EmailLoginView.as_view(),      name="jwt-login"),
    path("auth/refresh/",  TokenRefreshView.as_view(),    name="jwt-refresh"),
    path("auth/logout/",   TokenBlacklistView.as_view(),  name="jwt-logout"),
    path("auth/register/", RegisterSchoolView.as_view(),  name="register-school"),
    # dashboards
    path("analytics/", AnalyticsView.as_view(), name="analytics"),
    path("dashboard/", DashboardView.as_view(), name="dashboard"),
    # REST resources
    *router.urls
]
