"""Management command to create the staff permission groups."""

from django.contrib.auth.models import Group, Permission
from django.contrib.contenttypes.models import ContentType
from django.core.management.base import BaseCommand

from loans.models import Equipment, EquipmentImage, Loan, LoanEvidence

GROUP_MODELS = (Equipment, EquipmentImage, Loan, LoanEvidence)


class Command(BaseCommand):
    help = "Create the 'Super User' and 'Viewer' groups with permissions"

    def handle(self, *args, **options):
        def get_perms(*actions):
            perms = []
            for model in GROUP_MODELS:
                ct = ContentType.objects.get_for_model(model)
                for perm_action in actions:
                    codename = f"{perm_action}_{model._meta.model_name}"
                    perms.append(
                        Permission.objects.get(
                            codename=codename, content_type=ct
                        )
                    )
            return perms

        # Super User group: full control of loans and equipment
        super_user, _ = Group.objects.get_or_create(name="Super User")
        super_user.permissions.set(
            get_perms("view", "add", "change", "delete")
        )
        self.stdout.write(
            self.style.SUCCESS("Created/updated 'Super User' group")
        )

        # Viewer group: read only
        viewer, _ = Group.objects.get_or_create(name="Viewer")
        viewer.permissions.set(get_perms("view"))
        self.stdout.write(self.style.SUCCESS("Created/updated 'Viewer' group"))

        self.stdout.write(
            self.style.SUCCESS("All permission groups configured.")
        )
