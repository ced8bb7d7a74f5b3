from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/", include("teacher_eval.urls.api")),
    path("api/accounts/", include("accounts.urls")),
]
