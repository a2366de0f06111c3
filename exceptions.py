"""
Errors raised by the discovery service.

    SafeHavenError
    ├── ValidationError           400, bad caller input
    ├── LocationUnavailableError  422, no coordinate to search around
    └── ExternalServiceError      502
        └── SearchProviderError   geo search provider failure

``main.create_app`` registers one handler that renders any SafeHavenError as
``{"error": <class name>, "message": ..., "detail": {...}}`` with its
``status_code``. Provider errors normally stay inside the engine, where the
executor turns them into a ProviderStatusSnapshot.
"""

from typing import Any, Dict, Optional


class SafeHavenError(Exception):
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail = dict(detail) if detail else None
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": type(self).__name__, "message": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class ValidationError(SafeHavenError):
    """Unknown category, blank or oversized query, bad radius or sort."""

    status_code = 400


class LocationUnavailableError(SafeHavenError):
    status_code = 422

    def __init__(self, message: str = "Location not available", *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message, detail=detail)


class ExternalServiceError(SafeHavenError):
    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        service_name: Optional[str] = None,
    ):
        super().__init__(message, detail=detail)
        if service_name:
            self.detail = {**(self.detail or {}), "service": service_name}


class SearchProviderError(ExternalServiceError):
    """
    A geo search provider rejected or failed a request.

    Put the HTTP status or the provider's status string in the message, e.g.
    ``"429 Too Many Requests: OVER_QUERY_LIMIT"``: the executor classifies
    failures (exhausted, rate limited, other) from the message text.
    """

    def __init__(
        self,
        message: str,
        *,
        detail: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message, detail=detail, service_name="search_provider")
        if provider:
            self.detail["provider"] = provider
