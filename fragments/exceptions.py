"""Fragments exception hierarchy.

All custom exceptions inherit from FragmentsError, allowing callers
(the HTTP layer, the CLI) to catch broad or specific error categories
and map them to their own status codes.
"""


class FragmentsError(Exception):
    """Base exception for all Fragments errors."""

    def __init__(self, message: str = "", fragment_id: str | None = None) -> None:
        self.fragment_id = fragment_id
        super().__init__(message)


class UnsupportedMediaTypeError(FragmentsError):
    """Raised when a payload's Content-Type is not a supported fragment type.

    Examples: application/pdf, a malformed header like "text/",
    an empty type string.
    """

    def __init__(
        self,
        message: str = "",
        fragment_id: str | None = None,
        content_type: str | None = None,
    ) -> None:
        self.content_type = content_type
        super().__init__(message, fragment_id)


class UnsupportedConversionError(FragmentsError):
    """Raised when a fragment cannot be represented in a requested extension.

    Examples: a text/plain fragment requested as .png, a JSON fragment
    requested as .html.
    """

    def __init__(
        self,
        message: str = "",
        fragment_id: str | None = None,
        extension: str | None = None,
    ) -> None:
        self.extension = extension
        super().__init__(message, fragment_id)


class ContentTypeMismatchError(FragmentsError):
    """Raised when an update tries to change a fragment's Content-Type."""


class PayloadTooLargeError(FragmentsError):
    """Raised when a body exceeds the configured maximum size."""


class ConversionError(FragmentsError):
    """Raised when the converter fails to transform fragment data.

    Examples: invalid JSON requested as .txt, a corrupt PNG requested
    as .jpg, YAML that does not parse.
    """

    def __init__(
        self,
        message: str = "",
        fragment_id: str | None = None,
        source_type: str | None = None,
        target: str | None = None,
    ) -> None:
        self.source_type = source_type
        self.target = target
        super().__init__(message, fragment_id)


class StorageError(FragmentsError):
    """Raised when a storage adapter fails to read or write.

    Examples: S3 upload failure, DynamoDB throttling, fragment content
    missing for metadata that exists.
    """

    def __init__(
        self,
        message: str = "",
        fragment_id: str | None = None,
        key: str | None = None,
    ) -> None:
        self.key = key
        super().__init__(message, fragment_id)


class VersionIdError(FragmentsError):
    """Raised when a version id cannot be parsed."""


class VersionIdFormatError(VersionIdError):
    """Raised when a version id lacks the ``<fragmentId>_v<n>`` shape."""


class VersionNumberError(VersionIdError):
    """Raised when the ``_v`` suffix of a version id is not an integer."""


class VersionOwnershipError(FragmentsError):
    """Raised when a version id belongs to a different fragment."""


class VersionDataNotFoundError(FragmentsError):
    """Raised by restore when the version's content is missing."""
