import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import loantrack.storage


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Equipment",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("laptop", "Portátil"),
                            ("printer", "Impresora"),
                            ("desktop", "Escritorio"),
                        ],
                        max_length=20,
                    ),
                ),
                ("serial_number", models.CharField(max_length=100, unique=True)),
                ("model", models.CharField(max_length=200)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("available", "Disponible"),
                            ("loaned", "En préstamo"),
                            ("maintenance", "Mantenimiento"),
                            ("lost", "Extraviado"),
                            ("damaged", "Dañado"),
                            ("inactive", "Inactivo"),
                            ("unavailable", "No disponible"),
                        ],
                        default="available",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name_plural": "equipment",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status"], name="idx_equipment_status"
                    ),
                    models.Index(fields=["type"], name="idx_equipment_type"),
                ],
            },
        ),
        migrations.CreateModel(
            name="EquipmentImage",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "image",
                    models.ImageField(
                        storage=loantrack.storage.get_evidence_storage,
                        upload_to="equipment/",
                    ),
                ),
                ("caption", models.CharField(blank=True, max_length=200)),
                ("uploaded_at", models.DateTimeField(auto_now_add=True)),
                (
                    "equipment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="images",
                        to="loans.equipment",
                    ),
                ),
            ],
            options={
                "ordering": ["uploaded_at"],
            },
        ),
        migrations.CreateModel(
            name="Loan",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("borrower_name", models.CharField(max_length=200)),
                ("borrower_department", models.CharField(max_length=200)),
                ("start_date", models.DateTimeField()),
                ("expected_return_date", models.DateTimeField()),
                (
                    "actual_return_date",
                    models.DateTimeField(blank=True, null=True),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("active", "Activo"),
                            ("returned", "Devuelto"),
                            ("delayed", "Retrasado"),
                            ("lost", "Extraviado"),
                            ("damaged", "Dañado"),
                        ],
                        default="active",
                        max_length=20,
                    ),
                ),
                ("accessories", models.JSONField(blank=True, default=list)),
                ("notes", models.TextField(blank=True)),
                (
                    "form_filled",
                    models.BooleanField(
                        default=False,
                        help_text=(
                            "The signed FI-1557 paper form has been "
                            "photographed"
                        ),
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="The staff member who registered the loan",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registered_loans",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "equipment",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="loans",
                        to="loans.equipment",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status"], name="idx_loan_status"),
                    models.Index(
                        fields=["borrower_department"],
                        name="idx_loan_department",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LoanEvidence",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("storage_path", models.CharField(max_length=500)),
                ("display_url", models.TextField(blank=True)),
                ("filename", models.CharField(max_length=255)),
                (
                    "uploaded_at",
                    models.DateTimeField(default=django.utils.timezone.now),
                ),
                (
                    "loan",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="evidence",
                        to="loans.loan",
                    ),
                ),
                (
                    "uploaded_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="uploaded_evidence",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "loan evidence",
                "ordering": ["-uploaded_at"],
            },
        ),
    ]
