"""Tests for project configuration."""

from django.conf import settings


class TestSettings:
    def test_overdue_loans_are_scheduled(self):
        tasks = {
            entry["task"] for entry in settings.CELERY_BEAT_SCHEDULE.values()
        }
        assert "loans.tasks.mark_overdue_loans" in tasks

    def test_evidence_storage_alias_is_configured(self):
        assert "evidence" in settings.STORAGES

    def test_evidence_defaults(self):
        assert settings.EVIDENCE_MAX_UPLOAD_SIZE == 10 * 1024 * 1024
        assert settings.EVIDENCE_SIGNED_URL_TTL == 3600

    def test_celery_app_is_loaded(self):
        from loantrack import celery_app

        assert celery_app.main == "loantrack"
