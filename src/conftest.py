"""Shared pytest fixtures for loantrack tests."""

from unittest.mock import MagicMock

import pytest

from django.conf import settings
from django.contrib.staticfiles.storage import staticfiles_storage
from django.core.files.storage import default_storage, storages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils.functional import empty

# Use local filesystem storage for tests (avoids S3 credential errors)
settings.STORAGES["default"] = {
    "BACKEND": "django.core.files.storage.FileSystemStorage",
}
settings.STORAGES["evidence"] = {
    "BACKEND": "loantrack.storage.EvidenceFileSystemStorage",
}
settings.STORAGES["staticfiles"] = {
    "BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage",
}

# Model fields resolve their storage at import time, which caches the
# backends built from the original STORAGES; drop that cache.
storages.__dict__.pop("backends", None)
storages._backends = None
storages._storages = {}
default_storage._wrapped = empty
staticfiles_storage._wrapped = empty

# Run Celery tasks synchronously in tests
settings.CELERY_TASK_ALWAYS_EAGER = True
settings.CELERY_TASK_EAGER_PROPAGATES = True

# Use in-memory cache for tests (avoids Redis connection errors)
settings.CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}


@pytest.fixture(autouse=True)
def _clear_cache():
    """Clear the in-memory cache before each test."""
    from django.core.cache import cache

    cache.clear()


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    """Keep uploaded files inside a per-test directory."""
    settings.MEDIA_ROOT = str(tmp_path / "media")
    settings.SITE_URL = "http://testserver"
    return tmp_path / "media"


from loans.factories import (  # noqa: E402
    EquipmentFactory,
    LoanFactory,
    UserFactory,
)

# --- User fixtures ---


@pytest.fixture
def password():
    return "testpass123!"


@pytest.fixture
def user(db, password):
    return UserFactory(
        username="testuser",
        email="test@example.com",
        password=password,
        is_staff=True,
    )


@pytest.fixture
def admin_user(db, password):
    return UserFactory(
        username="admin",
        email="admin@example.com",
        password=password,
        is_staff=True,
        is_superuser=True,
    )


@pytest.fixture
def admin_client(client, admin_user, password):
    client.login(username=admin_user.username, password=password)
    return client


# --- Core model fixtures ---


@pytest.fixture
def equipment(db):
    return EquipmentFactory(
        type="laptop",
        serial_number="SN-123/AB",
        model="Latitude 5420",
        status="available",
    )


@pytest.fixture
def loan(db, user):
    return LoanFactory(
        borrower_name="Ana María Pérez",
        borrower_department="Contabilidad",
        created_by=user,
    )


# --- Evidence fixtures ---


@pytest.fixture
def evidence_storage():
    from loantrack.storage import get_evidence_storage

    return get_evidence_storage()


@pytest.fixture
def image_file():
    """A small JPEG upload as a browser would send it."""
    return SimpleUploadedFile(
        "form.jpg", b"\xff\xd8\xff\xe0fake-jpeg", content_type="image/jpeg"
    )


@pytest.fixture
def reachable_probe():
    """Probe that reports every link as reachable."""
    return MagicMock(return_value=True)


@pytest.fixture
def unreachable_probe():
    """Probe that reports every link as unreachable."""
    return MagicMock(return_value=False)
