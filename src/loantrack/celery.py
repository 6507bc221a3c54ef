"""Celery configuration for loantrack."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "loantrack.settings")

app = Celery("loantrack")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
