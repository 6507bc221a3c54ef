"""Tests for Celery tasks and management commands."""

from datetime import date
from io import StringIO
from unittest.mock import patch

import pytest

from django.contrib.auth.models import Group
from django.core.management import CommandError, call_command

from loans.factories import LoanEvidenceFactory, LoanFactory
from loans.tasks import mark_overdue_loans, refresh_evidence_urls


class TestTasks:
    @patch("loans.services.evidence.url_is_reachable", return_value=True)
    def test_refresh_evidence_urls(self, mock_probe, loan):
        record = LoanEvidenceFactory(loan=loan, display_url="")

        assert refresh_evidence_urls(loan.pk) == 1

        record.refresh_from_db()
        assert record.display_url.endswith(record.storage_path)

    @patch("loans.services.evidence.url_is_reachable", return_value=False)
    def test_refresh_keeps_link_when_unreachable(self, mock_probe, loan):
        record = LoanEvidenceFactory(
            loan=loan, display_url="https://old.example.com/a.jpg"
        )

        assert refresh_evidence_urls(loan.pk) == 0

        record.refresh_from_db()
        assert record.display_url == "https://old.example.com/a.jpg"

    def test_refresh_missing_loan(self, db):
        assert refresh_evidence_urls(999999) == 0

    def test_refresh_runs_through_celery(self, loan):
        with patch(
            "loans.services.evidence.url_is_reachable", return_value=True
        ):
            LoanEvidenceFactory(loan=loan, display_url="")
            result = refresh_evidence_urls.apply(args=[loan.pk])
        assert result.get() == 1

    def test_mark_overdue_loans(self, loan):
        with patch(
            "django.utils.timezone.localdate", return_value=date(2024, 3, 20)
        ):
            assert mark_overdue_loans() == 1
        loan.refresh_from_db()
        assert loan.status == "delayed"


class TestSetupGroups:
    def test_creates_groups(self, db):
        out = StringIO()
        call_command("setup_groups", stdout=out)

        super_user = Group.objects.get(name="Super User")
        viewer = Group.objects.get(name="Viewer")
        assert super_user.permissions.filter(codename="delete_loan").exists()
        assert super_user.permissions.filter(
            codename="add_equipment"
        ).exists()
        codenames = set(viewer.permissions.values_list("codename", flat=True))
        assert codenames == {
            "view_equipment",
            "view_equipmentimage",
            "view_loan",
            "view_loanevidence",
        }
        assert "All permission groups configured." in out.getvalue()

    def test_is_idempotent(self, db):
        call_command("setup_groups", stdout=StringIO())
        call_command("setup_groups", stdout=StringIO())
        assert Group.objects.filter(name="Viewer").count() == 1


class TestMarkOverdueCommand:
    def test_marks_loans(self, loan):
        out = StringIO()
        call_command("mark_overdue_loans", "--date", "2024-03-16", stdout=out)
        assert "1 loan(s) marked as delayed." in out.getvalue()
        loan.refresh_from_db()
        assert loan.status == "delayed"

    def test_bad_date(self, db):
        with pytest.raises(CommandError, match="not a valid date"):
            call_command(
                "mark_overdue_loans", "--date", "16/03/2024", stdout=StringIO()
            )


class TestRefreshEvidenceCommand:
    @patch("loans.services.evidence.url_is_reachable", return_value=True)
    def test_refreshes_all_loans(self, mock_probe, db):
        LoanEvidenceFactory(display_url="")
        LoanEvidenceFactory(display_url="")
        LoanFactory()  # No evidence
        out = StringIO()

        call_command("refresh_evidence_urls", stdout=out)

        assert "2 evidence link(s) updated." in out.getvalue()

    @patch("loans.services.evidence.url_is_reachable", return_value=True)
    def test_single_loan(self, mock_probe, loan):
        LoanEvidenceFactory(loan=loan, display_url="")
        LoanEvidenceFactory(display_url="")
        out = StringIO()

        call_command("refresh_evidence_urls", "--loan", loan.pk, stdout=out)

        assert "1 evidence link(s) updated." in out.getvalue()

    def test_unknown_loan(self, db):
        with pytest.raises(CommandError, match="no evidence"):
            call_command(
                "refresh_evidence_urls", "--loan", 999999, stdout=StringIO()
            )
