"""Error types raised while ingesting an EPUB."""

from enum import Enum


class FlowReaderError(Exception):
    """Base class for fatal ingestion errors."""

    user_message = "The book could not be opened."

    def __init__(self, message: str | None = None):
        self.message = message or self.user_message
        super().__init__(self.message)


class ArchiveError(FlowReaderError):
    """Archive is unreadable, corrupt, or could not be unpacked."""

    user_message = "The file is not a readable EPUB archive."


class ContainerErrorKind(str, Enum):
    """Failure modes of the container descriptor."""

    INVALID_CONTAINER = "invalid_container"


class ContainerError(FlowReaderError):
    """META-INF/container.xml is missing, malformed, or names no package."""

    user_message = "The book's container descriptor is missing or invalid."

    def __init__(
        self,
        message: str | None = None,
        kind: ContainerErrorKind = ContainerErrorKind.INVALID_CONTAINER,
    ):
        self.kind = kind
        super().__init__(message)


class PackageErrorKind(str, Enum):
    """Failure modes of the package document (OPF)."""

    INVALID_OPF = "invalid_opf"
    INVALID_METADATA = "invalid_metadata"
    INVALID_MANIFEST = "invalid_manifest"
    INVALID_SPINE = "invalid_spine"


_PACKAGE_MESSAGES = {
    PackageErrorKind.INVALID_OPF: "The book's package document could not be read.",
    PackageErrorKind.INVALID_METADATA: "The book's package document has no metadata section.",
    PackageErrorKind.INVALID_MANIFEST: "The book's package document has no manifest.",
    PackageErrorKind.INVALID_SPINE: "The book's package document has no reading order (spine).",
}


class PackageError(FlowReaderError):
    """Package document is unparseable or lacks a required section."""

    def __init__(self, kind: PackageErrorKind, message: str | None = None):
        self.kind = kind
        super().__init__(message or _PACKAGE_MESSAGES[kind])

    @property
    def user_message(self) -> str:  # type: ignore[override]
        return _PACKAGE_MESSAGES[self.kind]


class LoadSupersededError(FlowReaderError):
    """A load was replaced by a newer load on the same session."""

    user_message = "Loading was cancelled because another book was opened."
