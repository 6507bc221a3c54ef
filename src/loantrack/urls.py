"""URL configuration for loantrack project."""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path

from loantrack.views import evidence_signed, health_check

urlpatterns = [
    path("admin/", admin.site.urls),
    path("evidence/<str:token>/", evidence_signed, name="evidence_signed"),
    path("health/", health_check, name="health_check"),
]

if settings.DEBUG and not settings.USE_S3:
    urlpatterns += static(
        settings.MEDIA_URL, document_root=settings.MEDIA_ROOT
    )
