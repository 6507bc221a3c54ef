"""Tests for loan tracking models."""

from datetime import date

import pytest

from django.core.exceptions import ValidationError

from loans.factories import EquipmentFactory, LoanEvidenceFactory, LoanFactory
from loans.models import Equipment, Loan
from loans.services.dates import to_stored_timestamp


class TestEquipment:
    def test_str(self, equipment):
        assert str(equipment) == "Latitude 5420 (SN-123/AB)"

    @pytest.mark.parametrize(
        "equipment_type, expected",
        [
            ("desktop", "inactive"),
            ("laptop", "available"),
            ("printer", "available"),
        ],
    )
    def test_default_status_for(self, equipment_type, expected):
        assert Equipment.default_status_for(equipment_type) == expected

    def test_is_available(self, db):
        assert EquipmentFactory(status="available").is_available
        assert not EquipmentFactory(status="maintenance").is_available


class TestLoan:
    def test_str(self, loan):
        assert str(loan) == f"Ana María Pérez - {loan.equipment}"

    def test_clean_rejects_return_before_start(self, loan):
        loan.expected_return_date = to_stored_timestamp("2024-02-28")
        with pytest.raises(ValidationError) as exc_info:
            loan.clean()
        assert "expected_return_date" in exc_info.value.message_dict

    def test_clean_allows_same_day(self, loan):
        loan.expected_return_date = loan.start_date
        loan.clean()  # Should not raise

    def test_is_open(self, db):
        assert LoanFactory(status="active").is_open
        assert LoanFactory(status="delayed").is_open
        assert not LoanFactory(status="returned").is_open

    def test_can_transition_to(self, loan):
        assert loan.can_transition_to("returned")
        assert not loan.can_transition_to("bogus")

    def test_every_status_has_transitions(self):
        assert set(Loan.VALID_TRANSITIONS) == {
            value for value, _label in Loan.STATUS_CHOICES
        }

    def test_is_overdue(self, loan):
        # Due back 2024-03-15
        assert loan.is_overdue(date(2024, 3, 16))
        assert not loan.is_overdue(date(2024, 3, 15))

    def test_closed_loan_is_never_overdue(self, db):
        loan = LoanFactory(status="returned")
        assert not loan.is_overdue(date(2030, 1, 1))

    def test_current_evidence(self, loan):
        assert loan.current_evidence is None
        record = LoanEvidenceFactory(loan=loan)
        assert loan.current_evidence == record

    def test_with_related(self, loan):
        fetched = Loan.objects.with_related().get(pk=loan.pk)
        assert fetched.equipment == loan.equipment


class TestLoanEvidence:
    def test_str(self, db):
        record = LoanEvidenceFactory(storage_path="evidencias/x/FI-1557-1.jpg")
        assert str(record) == "FI-1557-1.jpg"
