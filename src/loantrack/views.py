"""Project-level views for loantrack."""

import logging
import mimetypes

from django.core import signing
from django.http import FileResponse, Http404, HttpResponse, JsonResponse
from django.views.decorators.http import require_safe

from loans.services.evidence import EVIDENCE_ROOT
from loantrack.storage import get_evidence_storage, read_signed_token

logger = logging.getLogger(__name__)


@require_safe
def evidence_signed(request, token):
    """Serve a stored file behind a time-limited signed link."""
    try:
        path, expired = read_signed_token(token)
    except signing.BadSignature:
        raise Http404
    if expired:
        return HttpResponse("This link has expired.", status=410)

    storage = get_evidence_storage()
    if not storage.exists(path):
        logger.warning("Signed link points at missing file %s", path)
        raise Http404

    content_type, _ = mimetypes.guess_type(path)
    return FileResponse(
        storage.open(path),
        content_type=content_type or "application/octet-stream",
    )


def _check_database():
    from django.db import connection

    connection.ensure_connection()


def _check_cache():
    from django.core.cache import cache

    cache.set("_health_check", "1", timeout=10)
    if cache.get("_health_check") != "1":
        raise RuntimeError("cache did not return the value just written")


def _check_evidence_storage():
    # Only a raised error counts; a missing folder is fine
    get_evidence_storage().exists(EVIDENCE_ROOT)


HEALTH_CHECKS = {
    "db": _check_database,
    "cache": _check_cache,
    "evidence_storage": _check_evidence_storage,
}


def health_check(request):
    """Report database, cache and evidence storage availability."""
    results = {}
    for name, check in HEALTH_CHECKS.items():
        try:
            check()
        except Exception:
            logger.exception("Health check: %s unavailable", name)
            results[name] = False
        else:
            results[name] = True

    status = "ok" if all(results.values()) else "degraded"
    # Only the database decides the HTTP status
    return JsonResponse(
        {"status": status, **results},
        status=200 if results["db"] else 503,
    )
