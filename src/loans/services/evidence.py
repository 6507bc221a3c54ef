"""Evidence upload and display-link resolution.

A stored file is reached through one of two links: a public link (no
credential, never expires) or a signed link (expires after
``EVIDENCE_SIGNED_URL_TTL`` seconds). The public link is preferred whenever
it answers; the signed link is only tried when it does not.
"""

import logging
import re
from dataclasses import dataclass

from django.conf import settings
from django.db import transaction as db_transaction
from django.utils import timezone

from loantrack.storage import get_evidence_storage

from ..exceptions import (
    EvidenceUnreachable,
    FileTooLarge,
    InvalidFileType,
    UploadFailed,
)
from ..models import LoanEvidence
from .reachability import DEFAULT_TIMEOUT, url_is_reachable

logger = logging.getLogger(__name__)

EVIDENCE_ROOT = "evidencias"
FORM_CODE = "FI-1557"
SIGNED_URL_TTL = 3600
MAX_UPLOAD_SIZE = 10 * 1024 * 1024

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def sanitize_component(value) -> str:
    """Drop every non-alphanumeric character and lower-case the rest."""
    return _NON_ALNUM_RE.sub("", value or "").lower()


def extension_for(content_type: str) -> str:
    """File extension for an image MIME type (``image/png`` -> ``png``)."""
    subtype = (content_type or "").partition("/")[2]
    subtype = sanitize_component(subtype.split("+")[0])
    return subtype or "jpg"


def derive_evidence_path(
    equipment_type: str,
    serial_number: str | None,
    borrower_name: str,
    timestamp_millis: int,
    extension: str = "jpg",
) -> str:
    """Build the storage path for a loan's form photograph.

    ``evidencias/prestamo_{type}_{serial}_{borrower}/FI-1557-{ms}.{ext}``.
    Pure function of its arguments.
    """
    serial = sanitize_component(serial_number) or "unknown"
    borrower = sanitize_component(borrower_name)
    folder = f"prestamo_{equipment_type or 'equipo'}_{serial}_{borrower}"
    filename = f"{FORM_CODE}-{timestamp_millis}.{extension}"
    return f"{EVIDENCE_ROOT}/{folder}/{filename}"


def validate_evidence_file(file, max_size: int | None = None) -> None:
    """Raise InvalidFileType or FileTooLarge for an unacceptable upload."""
    content_type = getattr(file, "content_type", None) or ""
    if not content_type.startswith("image/"):
        raise InvalidFileType(content_type)
    if max_size is None:
        max_size = getattr(
            settings, "EVIDENCE_MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE
        )
    if file.size > max_size:
        raise FileTooLarge(file.size, max_size)


@dataclass(frozen=True)
class Resolution:
    """Outcome of a link resolution.

    ``mode`` is ``public``, ``signed``, or ``unchanged`` (refresh mode kept
    the previous link because nothing new was reachable).
    """

    url: str
    mode: str

    @property
    def changed(self) -> bool:
        return self.mode != "unchanged"


class EvidenceURLResolver:
    """Turn a durable storage path into a link a client can fetch now."""

    def __init__(
        self, storage=None, probe=None, signed_ttl=None, timeout=None
    ):
        self.storage = (
            storage if storage is not None else get_evidence_storage()
        )
        self.probe = probe or url_is_reachable
        self.signed_ttl = signed_ttl or getattr(
            settings, "EVIDENCE_SIGNED_URL_TTL", SIGNED_URL_TTL
        )
        self.timeout = timeout or getattr(
            settings, "EVIDENCE_PROBE_TIMEOUT", DEFAULT_TIMEOUT
        )

    def _is_reachable(self, url) -> bool:
        return bool(url) and self.probe(url, timeout=self.timeout)

    def _signed_url(self, storage_path):
        try:
            return self.storage.signed_url(storage_path, self.signed_ttl)
        except Exception:
            logger.warning(
                "Error creating signed URL for %s", storage_path, exc_info=True
            )
            return None

    def resolve(self, storage_path: str) -> Resolution:
        """Return the public link if it answers, else the signed link.

        Raises EvidenceUnreachable when neither answers.
        """
        public_url = self.storage.public_url(storage_path)
        if self._is_reachable(public_url):
            return Resolution(url=public_url, mode="public")
        logger.warning(
            "Public URL not accessible, trying signed URL: %s", public_url
        )

        signed_url = self._signed_url(storage_path)
        if self._is_reachable(signed_url):
            return Resolution(url=signed_url, mode="signed")

        logger.error(
            "Neither public nor signed URL is accessible for: %s",
            storage_path,
        )
        raise EvidenceUnreachable(storage_path)

    def refresh(self, storage_path: str, previous_url: str = "") -> Resolution:
        """Best-effort resolve that keeps ``previous_url`` on total failure."""
        try:
            return self.resolve(storage_path)
        except EvidenceUnreachable:
            logger.warning(
                "Keeping previous display URL for %s", storage_path
            )
            return Resolution(url=previous_url, mode="unchanged")


@dataclass(frozen=True)
class EvidenceUpload:
    """A stored evidence record plus any warning about its display link."""

    record: LoanEvidence
    warning: str = ""


def upload_evidence(
    loan,
    file,
    uploaded_by=None,
    storage=None,
    resolver=None,
    now=None,
) -> EvidenceUpload:
    """Store the FI-1557 photograph for a loan and link it to the loan.

    Replaces any earlier evidence record of the loan and marks its paper
    form as filled. Raises InvalidFileType or FileTooLarge before storage
    is contacted, and UploadFailed (leaving the loan untouched) when the
    storage write fails. A stored file whose link cannot be verified is
    still returned, with an empty ``display_url`` and a warning.
    """
    validate_evidence_file(file)

    if resolver is None:
        resolver = EvidenceURLResolver(storage=storage)
    storage = resolver.storage if storage is None else storage

    now = now or timezone.now()
    equipment = loan.equipment
    path = derive_evidence_path(
        equipment.type,
        equipment.serial_number,
        loan.borrower_name,
        int(now.timestamp() * 1000),
        extension_for(file.content_type),
    )

    logger.info("Uploading evidence for loan %s to %s", loan.pk, path)
    try:
        stored_path = storage.save(path, file)
    except Exception as exc:
        logger.error("Upload of %s failed: %s", path, exc)
        raise UploadFailed(str(exc)) from exc

    with db_transaction.atomic():
        loan.evidence.all().delete()
        record = LoanEvidence.objects.create(
            loan=loan,
            storage_path=stored_path,
            filename=stored_path.rsplit("/", 1)[-1],
            uploaded_at=now,
            uploaded_by=uploaded_by,
        )
        loan.form_filled = True
        loan.save(update_fields=["form_filled", "updated_at"])

    try:
        resolution = resolver.resolve(stored_path)
    except EvidenceUnreachable:
        return EvidenceUpload(
            record=record,
            warning=(
                "The file was stored but no accessible link could be "
                "obtained yet. Refresh the evidence links later."
            ),
        )

    record.display_url = resolution.url
    record.save(update_fields=["display_url"])
    logger.info(
        "Evidence for loan %s available via %s link",
        loan.pk,
        resolution.mode,
    )
    return EvidenceUpload(record=record)


def refresh_display_url(record, resolver=None) -> Resolution:
    """Recompute a record's display link, saving it when it changed."""
    resolver = resolver or EvidenceURLResolver()
    resolution = resolver.refresh(record.storage_path, record.display_url)
    if resolution.changed and resolution.url != record.display_url:
        record.display_url = resolution.url
        record.save(update_fields=["display_url"])
    return resolution


def refresh_evidence_urls(loan, resolver=None) -> int:
    """Refresh every evidence link of a loan. Returns how many changed."""
    resolver = resolver or EvidenceURLResolver()
    changed = 0
    for record in loan.evidence.all():
        previous = record.display_url
        refresh_display_url(record, resolver)
        if record.display_url != previous:
            changed += 1
    return changed
