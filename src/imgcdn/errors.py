"""Error hierarchy for imgcdn.

Contract violations are raised before any provider logic runs. Unsupported
fit or format values are never errors: each provider documents whether it
passes them through or drops them. Upstream errors only come from the local
proxy app, which is the one place that talks to the network.
"""

from __future__ import annotations


class ImageURLError(Exception):
    """Base error for all imgcdn errors."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.retryable = retryable


class ContractViolationError(ImageURLError, ValueError):
    """Invalid caller input: bad modifier values, empty source, malformed path.

    Subclasses ValueError so callers can catch it without importing imgcdn.
    Not retryable.
    """

    def __init__(
        self, message: str, *, provider: str | None = None, field: str | None = None
    ) -> None:
        super().__init__(message, provider=provider, retryable=False)
        self.field = field


class ConfigurationError(ImageURLError):
    """Misconfiguration, e.g. no provider registered. Not retryable."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message, provider=provider, retryable=False)


class UnknownProviderError(ConfigurationError):
    """The requested provider name is not in the catalog."""


class UpstreamError(ImageURLError):
    """Fetching a source image for the local proxy failed."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        retryable: bool = False,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, provider="local", retryable=retryable)
        self.url = url
        self.status_code = status_code
        self.retry_after = retry_after


class SourceNotFoundError(UpstreamError):
    """404 upstream, or a missing file under the public directory."""

    def __init__(
        self, message: str, *, url: str | None = None, status_code: int = 404
    ) -> None:
        super().__init__(message, url=url, status_code=status_code, retryable=False)


def classify_upstream_status(
    status_code: int, url: str, body: str = "", retry_after: float | None = None
) -> UpstreamError:
    """Map an upstream HTTP status code to the appropriate error type.

    ``retry_after`` (seconds, from the upstream header) is kept on retryable
    errors only.
    """
    message = f"Upstream {url} returned {status_code}"
    if body:
        message = f"{message}: {body[:200]}"

    if status_code in (404, 410):
        return SourceNotFoundError(message, url=url, status_code=status_code)
    if status_code in (408, 429) or status_code >= 500:
        return UpstreamError(
            message, url=url, status_code=status_code, retryable=True, retry_after=retry_after
        )
    return UpstreamError(message, url=url, status_code=status_code)
