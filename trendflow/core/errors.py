"""
Error taxonomy shared by every pipeline stage.

Per-unit failures (one record, one cluster, one provider) are raised as
one of these, logged by the enclosing stage, and skipped. Only errors
that escape the driver terminate the process.
"""


class TrendflowError(Exception):
    """Base exception for all pipeline errors."""


class HTTPClientError(TrendflowError):
    """Non-retryable HTTP failure (4xx other than rate limiting)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class TransientNetworkError(HTTPClientError):
    """Timeout, connection failure or 5xx that outlived the retry ceiling."""


class RateLimitedError(HTTPClientError):
    """429/403-class response; the caller should rotate provider or abort."""


class QuotaExhaustedError(TrendflowError):
    """No provider with remaining monthly budget is available."""

    def __init__(self, platform: str):
        super().__init__(f"No {platform} provider with remaining quota")
        self.platform = platform


class MalformedResponseError(TrendflowError):
    """Model output could not be recovered into the expected structure."""


class PersistenceConflictError(TrendflowError):
    """Unexpected write failure for a single record."""


class ConfigurationMissingError(TrendflowError):
    """A feature is disabled because its configuration is absent."""
