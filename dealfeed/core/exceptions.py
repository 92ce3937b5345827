"""Custom exception classes for the application."""

from typing import Mapping, Optional


class DealFeedException(Exception):
    """Base exception for all DealFeed errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class SourceError(DealFeedException):
    """Raised when a source adapter cannot produce records.

    Always tagged with the platform so diagnostics can be keyed by source.
    """

    kind = "source_error"

    def __init__(self, platform: str, message: str):
        self.platform = platform
        self.detail = message
        super().__init__(f"{platform}: {message}")


class SourceUnavailableError(SourceError):
    """Raised on network, timeout or HTTP errors from one source."""

    kind = "source_unavailable"


class SourceTimeoutError(SourceUnavailableError):
    """Raised when a source does not answer within its timeout."""

    kind = "timeout"


class SourceAuthError(SourceUnavailableError):
    """Raised when the formal API rejects our credentials (401/403)."""

    kind = "auth_error"


class SourceRateLimitedError(SourceUnavailableError):
    """Raised when a source answers 429."""

    kind = "rate_limited"

    def __init__(self, platform: str, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        message = "rate limit exceeded"
        if retry_after is not None:
            message += f", retry after {retry_after:g}s"
        super().__init__(platform, message)


class MarkupChangedError(SourceError):
    """Raised when a scraped page no longer yields any parseable listing."""

    kind = "markup_changed"


class UnparseablePriceError(DealFeedException):
    """Raised by the normalizer when a record has no recoverable price."""

    def __init__(self, raw: object):
        self.raw = raw
        super().__init__(f"Unparseable price: {raw!r}")


class AllSourcesFailedError(DealFeedException):
    """Raised by callers that treat a fully failed search as an error."""

    def __init__(self, term: str, errors: Mapping[str, str]):
        self.term = term
        self.errors = dict(errors)
        super().__init__(f"All {len(self.errors)} sources failed for '{term}'")


class SearchRateLimitError(DealFeedException):
    """Raised when a caller exceeds its own search budget."""

    def __init__(self, retry_after: float):
        self.retry_after = retry_after
        super().__init__(f"Search rate limit exceeded, retry after {retry_after:.0f}s")
