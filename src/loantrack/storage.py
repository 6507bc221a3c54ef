"""Storage backends for loan evidence and equipment photographs.

Both backends expose the two link flavours the evidence resolver needs:
``public_url`` (no credential, never expires) and ``signed_url`` (time
limited). Uploads use the regular Django storage API.
"""

import time

from storages.backends.s3boto3 import S3Boto3Storage
from storages.utils import clean_name

from django.conf import settings
from django.core import signing
from django.core.files.storage import FileSystemStorage, storages
from django.urls import reverse

SIGNED_URL_SALT = "loantrack.storage.evidence"


def absolute_url(url: str) -> str:
    """Prefix a site-relative link with ``SITE_URL``."""
    if url.startswith(("http://", "https://")):
        return url
    return f"{settings.SITE_URL}/{url.lstrip('/')}"


def get_evidence_storage():
    """Return the storage configured under the ``evidence`` alias."""
    return storages["evidence"]


class EvidenceS3Storage(S3Boto3Storage):
    """S3 storage returning unsigned public links and presigned links."""

    def public_url(self, name):
        return self.url(name)

    def signed_url(self, name, expire):
        key = self._normalize_name(clean_name(name))
        return self.connection.meta.client.generate_presigned_url(
            "get_object",
            Params={"Bucket": self.bucket_name, "Key": key},
            ExpiresIn=expire,
        )


class EvidenceFileSystemStorage(FileSystemStorage):
    """Local storage whose signed links point at the evidence proxy view."""

    def public_url(self, name):
        return absolute_url(self.url(name))

    def signed_url(self, name, expire):
        token = signing.dumps(
            {"path": name, "exp": int(time.time()) + int(expire)},
            salt=SIGNED_URL_SALT,
        )
        return absolute_url(
            reverse("evidence_signed", kwargs={"token": token})
        )


def read_signed_token(token):
    """Return ``(path, expired)`` for a token made by ``signed_url``.

    Raises ``signing.BadSignature`` when the token was tampered with.
    """
    data = signing.loads(token, salt=SIGNED_URL_SALT)
    return data["path"], data["exp"] < time.time()
