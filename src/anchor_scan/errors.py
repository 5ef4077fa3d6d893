"""Exception hierarchy for the block scanner."""


class AnchorScanError(Exception):
    """Base class for scanner errors."""


class ValidationError(AnchorScanError, ValueError):
    """Invalid search input (dates, batch size, limit)."""


class StoreUnavailableError(AnchorScanError):
    """The content store cannot be opened or has no posts table."""


class StagingUnsupported(AnchorScanError):
    """The store refused to create a temporary table.

    Raised by the capability probe and handled by the scanner, which falls
    back to direct paging. Never shown to the user as an error.
    """


class PartialBatchFailure(AnchorScanError):
    """A batch fetch failed mid-scan."""

    def __init__(self, offset: int, cause: Exception):
        super().__init__(f"Batch fetch at offset {offset} failed: {cause}")
        self.offset = offset
        self.cause = cause
