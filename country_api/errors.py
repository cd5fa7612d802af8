"""Error taxonomy raised by the refresh pipeline and the country store.

The HTTP layer maps each class to a status code and a JSON body in
``country_api.main``; everything not listed here is treated as an
unclassified internal failure.
"""
from typing import Any, Optional


class CountryApiError(Exception):
    """Base class for errors the API knows how to report."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, details: Optional[Any] = None):
        self.details = details
        super().__init__(details if isinstance(details, str) else self.error)

    def to_dict(self) -> dict:
        body: dict = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class UpstreamUnavailable(CountryApiError):
    """An external data source timed out, failed, or answered with garbage."""

    status_code = 503
    error = "External data source unavailable"

    def __init__(self, source: str, reason: Optional[str] = None):
        self.source = source
        self.reason = reason
        super().__init__(f"Could not fetch data from {source}")


class ArtifactWriteFailed(CountryApiError):
    status_code = 500
    error = "Summary image generation failed"

    def __init__(self, path, reason: Optional[str] = None):
        self.path = path
        self.reason = reason
        super().__init__("Country data was refreshed but the summary image could not be written")


class CountryNotFound(CountryApiError):
    status_code = 404
    error = "Country not found"

    def __init__(self, name: str):
        self.name = name
        super().__init__(None)

    def __str__(self) -> str:
        return f"Country not found: {self.name}"


class ValidationFailed(CountryApiError):
    status_code = 400
    error = "Validation failed"

    def __init__(self, details: dict):
        super().__init__(details)

    def __str__(self) -> str:
        return f"Validation failed: {self.details}"
