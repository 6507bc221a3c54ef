"""Errors raised by the loan date and evidence services.

Validation errors subclass Django's ValidationError so forms and the admin
can show them as field errors. Storage and link errors share EvidenceError.
"""

from django.core.exceptions import ValidationError


class InvalidDateFormat(ValidationError):
    """A calendar date was not a real ``yyyy-MM-dd`` date."""

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"'{value}' is not a valid date. Use the format YYYY-MM-DD.",
            code="invalid_date",
        )


class InvalidFileType(ValidationError):
    """An evidence upload was not an image."""

    def __init__(self, content_type):
        self.content_type = content_type
        super().__init__(
            "The evidence file must be an image "
            f"(received '{content_type or 'unknown'}').",
            code="invalid_file_type",
        )


class FileTooLarge(ValidationError):
    """An evidence upload exceeded the configured size cap."""

    def __init__(self, size, max_size):
        self.size = size
        self.max_size = max_size
        super().__init__(
            f"The file is too large ({size} bytes). "
            f"Maximum allowed is {max_size // (1024 * 1024)} MB.",
            code="file_too_large",
        )


class EvidenceError(Exception):
    """Base class for storage and link failures."""


class UploadFailed(EvidenceError):
    """Object storage refused or failed the upload."""

    def __init__(self, message):
        self.message = message
        super().__init__(f"Error uploading the evidence file: {message}")


class EvidenceUnreachable(EvidenceError):
    """Neither the public nor the signed link could be fetched."""

    def __init__(self, storage_path):
        self.storage_path = storage_path
        super().__init__(
            f"Neither public nor signed URL is accessible for {storage_path}"
        )
