"""Factory Boy factories for loan tracking test data."""

import factory
from factory.django import DjangoModelFactory

from django.utils import timezone

from .services.dates import to_stored_timestamp


class UserFactory(DjangoModelFactory):
    """Factory for the staff user model."""

    class Meta:
        model = "auth.User"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    first_name = factory.Faker("first_name")
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])


class EquipmentFactory(DjangoModelFactory):
    """Factory for Equipment model."""

    class Meta:
        model = "loans.Equipment"

    type = "laptop"
    serial_number = factory.Sequence(lambda n: f"SN-{n:05d}")
    model = factory.Sequence(lambda n: f"Latitude 54{n:02d}")
    status = "available"


class EquipmentImageFactory(DjangoModelFactory):
    """Factory for EquipmentImage model."""

    class Meta:
        model = "loans.EquipmentImage"

    equipment = factory.SubFactory(EquipmentFactory)
    image = factory.django.ImageField(
        filename="test.jpg", width=100, height=100
    )


class LoanFactory(DjangoModelFactory):
    """Factory for Loan model. The equipment is created already loaned."""

    class Meta:
        model = "loans.Loan"

    equipment = factory.SubFactory(EquipmentFactory, status="loaned")
    created_by = factory.SubFactory(UserFactory)
    borrower_name = factory.Faker("name")
    borrower_department = "Sistemas"
    start_date = factory.LazyFunction(
        lambda: to_stored_timestamp("2024-03-01")
    )
    expected_return_date = factory.LazyFunction(
        lambda: to_stored_timestamp("2024-03-15")
    )
    status = "active"
    accessories = factory.LazyFunction(lambda: ["Cargador"])


class LoanEvidenceFactory(DjangoModelFactory):
    """Factory for LoanEvidence model."""

    class Meta:
        model = "loans.LoanEvidence"

    loan = factory.SubFactory(LoanFactory)
    storage_path = factory.Sequence(
        lambda n: f"evidencias/prestamo_laptop_sn{n}_test/FI-1557-{n}.jpg"
    )
    filename = factory.LazyAttribute(
        lambda o: o.storage_path.rsplit("/", 1)[-1]
    )
    uploaded_at = factory.LazyFunction(timezone.now)
